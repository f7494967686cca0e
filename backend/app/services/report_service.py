"""
Availability reports: window queries, rate-limited submission, per-space consensus.

A report counts toward a study space's status only while created_at is within the last
REPORT_WINDOW_MINUTES. Reports are never deleted to expire them; they just fall out of the window.
"""
import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.core.constants import REPORT_WINDOW_MINUTES
from app.core.errors import NotFoundError, RateLimitedError
from app.db.session import commit_or_raise
from app.models.availability_report import AvailabilityReport
from app.models.study_space import StudySpace
from app.models.study_space_status import StudySpaceStatus
from app.services.aggregation import SpaceAvailability, aggregate_reports

logger = logging.getLogger(__name__)


def as_utc(dt: datetime) -> datetime:
    """SQLite returns naive datetimes; everything we store is UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def window_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(minutes=REPORT_WINDOW_MINUTES)


# --- Store ---


def find_reports(db: Session, study_space_id: int, since: datetime) -> list[AvailabilityReport]:
    """Reports for one study space with created_at >= since, oldest first."""
    return (
        db.query(AvailabilityReport)
        .filter(AvailabilityReport.study_space_id == study_space_id, AvailabilityReport.created_at >= since)
        .order_by(AvailabilityReport.created_at.asc())
        .all()
    )


def find_reports_by_space(
    db: Session, study_space_ids: list[int], since: datetime
) -> dict[int, list[AvailabilityReport]]:
    """One query for many study spaces; missing ids map to an empty list."""
    grouped: dict[int, list[AvailabilityReport]] = defaultdict(list)
    if not study_space_ids:
        return grouped
    rows = (
        db.query(AvailabilityReport)
        .filter(AvailabilityReport.study_space_id.in_(study_space_ids), AvailabilityReport.created_at >= since)
        .all()
    )
    for r in rows:
        grouped[r.study_space_id].append(r)
    return grouped


def most_recent_report(db: Session, username: str, study_space_id: int) -> AvailabilityReport | None:
    return (
        db.query(AvailabilityReport)
        .filter(AvailabilityReport.username == username, AvailabilityReport.study_space_id == study_space_id)
        .order_by(AvailabilityReport.created_at.desc())
        .first()
    )


def insert_report(db: Session, report: AvailabilityReport) -> int:
    """Persist and return the new id. The commit completes before any broadcast reads it."""
    db.add(report)
    commit_or_raise(db, "insert availability report")
    db.refresh(report)
    return report.id


# --- Aggregation ---


def get_space_availability(db: Session, study_space_id: int, now: datetime | None = None) -> SpaceAvailability:
    return aggregate_reports(find_reports(db, study_space_id, window_start(now)))


def get_spaces_availability(
    db: Session, study_space_ids: list[int], now: datetime | None = None
) -> dict[int, SpaceAvailability]:
    grouped = find_reports_by_space(db, study_space_ids, window_start(now))
    return {sid: aggregate_reports(grouped.get(sid, [])) for sid in study_space_ids}


# --- Submission ---


def retry_after_minutes(last_created_at: datetime, now: datetime) -> int | None:
    """
    Minutes the reporter still has to wait, or None if a new report is allowed.
    Allowed once a full window has elapsed since their last report on this space.
    """
    elapsed = (now - as_utc(last_created_at)).total_seconds() / 60
    if elapsed >= REPORT_WINDOW_MINUTES:
        return None
    return math.ceil(REPORT_WINDOW_MINUTES - elapsed)


def submit_report(
    db: Session,
    study_space_id: int,
    building_name: str,
    username: str,
    status_name: str,
    now: datetime | None = None,
) -> AvailabilityReport:
    """
    Validate and store a report. Raises NotFoundError (space not in building, unknown status)
    or RateLimitedError (same user, same space, within the window).
    """
    now = now or datetime.now(timezone.utc)
    space = (
        db.query(StudySpace)
        .filter(StudySpace.id == study_space_id, StudySpace.building_name == building_name)
        .first()
    )
    if space is None:
        raise NotFoundError("provided studySpaceId does not exist in this building")
    if db.get(StudySpaceStatus, status_name) is None:
        raise NotFoundError("provided studySpaceStatusName does not exist")

    recent = most_recent_report(db, username, study_space_id)
    if recent is not None:
        wait = retry_after_minutes(recent.created_at, now)
        if wait is not None:
            logger.info("Rate limited report user=%s space=%s wait=%smin", username, study_space_id, wait)
            raise RateLimitedError(wait)

    report = AvailabilityReport(
        username=username,
        study_space_id=study_space_id,
        study_space_status_name=status_name,
        created_at=now,
    )
    insert_report(db, report)
    logger.info(
        "Availability report %s: user=%s building=%s space=%s status=%s",
        report.id, username, building_name, study_space_id, status_name,
    )
    return report


def list_window_reports(
    db: Session, building_name: str, study_space_id: int, now: datetime | None = None
) -> list[dict]:
    """Raw reports in the window for one study space (must belong to the building)."""
    exists = (
        db.query(StudySpace.id)
        .filter(StudySpace.id == study_space_id, StudySpace.building_name == building_name)
        .first()
    )
    if exists is None:
        raise NotFoundError("provided studySpaceId does not exist in this building")
    return [report_to_dict(r) for r in find_reports(db, study_space_id, window_start(now))]


def report_to_dict(r: AvailabilityReport) -> dict:
    return {
        "id": r.id,
        "username": r.username,
        "studySpaceId": r.study_space_id,
        "studySpaceStatusName": r.study_space_status_name,
        "createdAt": as_utc(r.created_at).isoformat() if r.created_at else None,
    }
