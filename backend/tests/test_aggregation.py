"""Consensus status for study spaces and buildings."""
from types import SimpleNamespace

from app.services.aggregation import (
    BuildingAvailability,
    SpaceAvailability,
    aggregate_building,
    aggregate_reports,
)


def _reports(*labels):
    return [SimpleNamespace(study_space_status_name=label) for label in labels]


def test_no_reports_is_unknown():
    result = aggregate_reports([])
    assert result.status == "Unknown"
    assert result.is_verified is False
    assert result.raw_reports() == {"available": 0, "nearlyFull": 0, "full": 0}


def test_majority_with_three_reports_is_verified():
    result = aggregate_reports(_reports("Available", "Available", "Available", "Full"))
    assert result.raw_reports() == {"available": 3, "nearlyFull": 0, "full": 1}
    assert result.status == "Available"
    assert result.is_verified is True


def test_two_matching_reports_are_not_verified():
    result = aggregate_reports(_reports("Full", "Full"))
    assert result.status == "Full"
    assert result.is_verified is False


def test_three_matching_reports_are_verified():
    result = aggregate_reports(_reports("Full", "Full", "Full"))
    assert result.status == "Full"
    assert result.is_verified is True


def test_plurality_without_majority_is_not_verified():
    result = aggregate_reports(_reports("Full", "Full", "Full", "Available", "Available", "Nearly Full"))
    assert result.status == "Full"
    assert result.is_verified is False


def test_ties_go_to_the_more_favorable_status():
    assert aggregate_reports(_reports("Full", "Available")).status == "Available"
    assert aggregate_reports(_reports("Full", "Nearly Full")).status == "Nearly Full"
    assert aggregate_reports(_reports("Full", "Nearly Full", "Available")).status == "Available"


def test_unrecognised_labels_are_ignored():
    result = aggregate_reports(_reports("Full", "Full", "Full", "Packed", None, "Empty"))
    assert result.raw_reports() == {"available": 0, "nearlyFull": 0, "full": 3}
    assert result.num_reports == 3
    assert result.status == "Full"
    assert result.is_verified is True


def test_only_unrecognised_labels_is_unknown():
    result = aggregate_reports(_reports("Packed", "Quiet"))
    assert result.status == "Unknown"
    assert result.num_reports == 0


def test_aggregation_is_repeatable():
    reports = _reports("Nearly Full", "Available", "Nearly Full")
    assert aggregate_reports(reports) == aggregate_reports(reports)


def test_building_takes_most_favorable_space():
    spaces = [
        SpaceAvailability(status="Full", is_verified=True),
        SpaceAvailability(status="Nearly Full"),
        SpaceAvailability(status="Unknown"),
    ]
    assert aggregate_building(spaces) == BuildingAvailability(status="Nearly Full", is_verified=True)


def test_building_verified_when_any_space_is():
    spaces = [
        SpaceAvailability(status="Available"),
        SpaceAvailability(status="Full", is_verified=True),
    ]
    result = aggregate_building(spaces)
    assert result.status == "Available"
    assert result.is_verified is True


def test_building_unverified_when_no_space_is():
    spaces = [SpaceAvailability(status="Full"), SpaceAvailability(status="Full")]
    assert aggregate_building(spaces) == BuildingAvailability(status="Full", is_verified=False)


def test_building_without_spaces_is_unknown():
    assert aggregate_building([]) == BuildingAvailability(status="Unknown", is_verified=False)


def test_building_with_only_unknown_spaces_is_unknown():
    assert aggregate_building([SpaceAvailability(), SpaceAvailability()]).status == "Unknown"
