"""
Per-building debounced refresh: after a report for building B, re-run B's refresh once the
report window has passed so its status decays back toward "Unknown" even with no new reports.

Each building has at most one pending APScheduler "date" job. Arming again cancels the
previous job first; cancel + add happen under one lock so two timers for the same building
are never live together.
"""
import itertools
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler

from app.core.constants import BUILDING_REFRESH_JOB_PREFIX, REPORT_WINDOW_MINUTES

logger = logging.getLogger(__name__)


class UpdateScheduler:
    def __init__(
        self,
        scheduler: BaseScheduler,
        on_fire: Callable[[str], Awaitable[None]],
        *,
        delay: timedelta = timedelta(minutes=REPORT_WINDOW_MINUTES),
    ) -> None:
        self._scheduler = scheduler
        self._on_fire = on_fire
        self._delay = delay
        self._pending: dict[str, str] = {}  # building name -> job id
        self._seq = itertools.count(1)
        self._lock = threading.Lock()

    def pending(self) -> dict[str, str]:
        with self._lock:
            return dict(self._pending)

    def arm(self, building_name: str, now: datetime | None = None) -> str:
        """(Re)start building_name's timer. Returns the new job id."""
        run_at = (now or datetime.now(timezone.utc)) + self._delay
        job_id = f"{BUILDING_REFRESH_JOB_PREFIX}:{building_name}:{next(self._seq)}"
        with self._lock:
            self._cancel_locked(building_name)
            self._scheduler.add_job(
                self._fire,
                "date",
                run_date=run_at,
                args=[building_name, job_id],
                id=job_id,
                misfire_grace_time=None,
            )
            self._pending[building_name] = job_id
        logger.debug("Armed refresh for %s at %s (%s)", building_name, run_at.isoformat(), job_id)
        return job_id

    def cancel(self, building_name: str) -> bool:
        with self._lock:
            return self._cancel_locked(building_name)

    def cancel_all(self) -> None:
        with self._lock:
            for name in list(self._pending):
                self._cancel_locked(name)

    def _cancel_locked(self, building_name: str) -> bool:
        job_id = self._pending.pop(building_name, None)
        if job_id is None:
            return False
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            # already fired (date jobs remove themselves before running)
            return False
        return True

    async def _fire(self, building_name: str, job_id: str) -> None:
        with self._lock:
            if self._pending.get(building_name) == job_id:
                del self._pending[building_name]
        logger.info("Scheduled refresh firing for building %s", building_name)
        try:
            await self._on_fire(building_name)
        except Exception as e:
            logger.exception("Scheduled refresh for %s failed: %s", building_name, e)
