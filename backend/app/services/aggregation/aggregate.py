"""
Turn recent availability reports into a consensus status.

- aggregate_reports: one study space, from the reports inside the trailing window.
- aggregate_building: one building, from the consensus of each of its study spaces.

Both are pure: callers load the reports (see report_service.find_reports) and pass them in.
"""
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from app.core.constants import (
    RAW_REPORT_KEYS,
    STATUS_AVAILABLE,
    STATUS_FULL,
    STATUS_NEARLY_FULL,
    STATUS_PRIORITY,
    STATUS_UNKNOWN,
    VERIFIED_MIN_REPORTS,
)


class ReportLike(Protocol):
    """Anything with a status label (ORM AvailabilityReport or a plain object in tests)."""
    study_space_status_name: str | None


@dataclass(frozen=True)
class SpaceAvailability:
    """Consensus for one study space. raw_counts is keyed by status label."""
    raw_counts: dict[str, int] = field(default_factory=lambda: {s: 0 for s in STATUS_PRIORITY})
    status: str = STATUS_UNKNOWN
    is_verified: bool = False

    @property
    def num_reports(self) -> int:
        return sum(self.raw_counts.values())

    def raw_reports(self) -> dict[str, int]:
        """rawReports wire shape: {"available": n, "nearlyFull": n, "full": n}."""
        return {RAW_REPORT_KEYS[label]: self.raw_counts.get(label, 0) for label in STATUS_PRIORITY}


@dataclass(frozen=True)
class BuildingAvailability:
    status: str = STATUS_UNKNOWN
    is_verified: bool = False


def aggregate_reports(reports: Iterable[ReportLike]) -> SpaceAvailability:
    """
    Majority vote over the given reports.

    Labels outside Available / Nearly Full / Full are ignored entirely: they are not
    counted in any bucket and do not count toward the total used for the majority test.
    Ties go to the earlier label in STATUS_PRIORITY.
    Verified when one label holds a strict majority of the counted reports and has at
    least VERIFIED_MIN_REPORTS of them (two matching reports are never trusted).
    """
    counts = {label: 0 for label in STATUS_PRIORITY}
    for report in reports:
        label = report.study_space_status_name
        if label in counts:
            counts[label] += 1

    total = sum(counts.values())
    if total == 0:
        return SpaceAvailability(raw_counts=counts)

    status = STATUS_UNKNOWN
    largest = 0
    for label in STATUS_PRIORITY:
        if counts[label] > largest:
            status = label
            largest = counts[label]

    is_verified = any(c > total / 2 and c >= VERIFIED_MIN_REPORTS for c in counts.values())
    return SpaceAvailability(raw_counts=counts, status=status, is_verified=is_verified)


def _combine_status(current: str, space_status: str) -> str:
    """Keep the most "free" of the two: Available > Nearly Full > Full > Unknown."""
    if space_status == STATUS_AVAILABLE:
        return STATUS_AVAILABLE
    if space_status == STATUS_NEARLY_FULL and current != STATUS_AVAILABLE:
        return STATUS_NEARLY_FULL
    if space_status == STATUS_FULL and current == STATUS_UNKNOWN:
        return STATUS_FULL
    return current


def aggregate_building(spaces: Iterable[SpaceAvailability]) -> BuildingAvailability:
    """
    Fold per-space consensus into a building status.

    status: the most favorable status of any space ("Unknown" if none has reports).
    is_verified: verified = verified or space.is_verified, i.e. true as soon as one
    space inside is confidently reporting, not only when every space is.
    """
    status = STATUS_UNKNOWN
    verified = False
    for space in spaces:
        status = _combine_status(status, space.status)
        verified = verified or space.is_verified
    return BuildingAvailability(status=status, is_verified=verified)
