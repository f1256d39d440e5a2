"""
Periodic appointment status sweep.

Every few minutes, on minute boundaries, the scheduler walks all appointment
IDs and applies the automatic status rule to each one. A failure on one
appointment is logged and recorded, and the sweep moves on to the next.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from threading import Event
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from petcare.core import config
from petcare.core.clock import SystemClock
from petcare.database import SessionLocal
from petcare.services.appointment_store import AppointmentStore
from petcare.services.lifecycle import AppointmentLifecycle
from petcare.services.slot_locks import discard_before

logger = logging.getLogger(__name__)

STATUS_SWEEP_JOB_ID = "appointment_status_sweep"

_status_scheduler: Optional['StatusScheduler'] = None


@dataclass
class SweepError:
    appointment_id: int | None
    message: str


@dataclass
class SweepResult:
    changed: int = 0
    errors: list[SweepError] = field(default_factory=list)


def run_status_sweep(
    db: Session,
    now: datetime,
    should_stop: Callable[[], bool] | None = None,
) -> SweepResult:
    """Apply the automatic status rule to every appointment as of ``now``.

    Never raises: per-appointment failures are collected in the result.
    ``should_stop`` is checked before each appointment so a shutdown lets the
    current evaluation finish without starting another one.
    """
    store = AppointmentStore(db)
    lifecycle = AppointmentLifecycle(store)
    result = SweepResult()

    try:
        appointment_ids = store.find_all_ids()
    except Exception as exc:
        logger.exception('Could not list appointments for the status sweep.')
        result.errors.append(SweepError(appointment_id=None, message=str(exc)))
        return result

    for appointment_id in appointment_ids:
        if should_stop is not None and should_stop():
            logger.info('Status sweep stopped before appointment %s.', appointment_id)
            break

        try:
            if lifecycle.advance_status(appointment_id, now):
                result.changed += 1
        except Exception as exc:
            db.rollback()
            logger.exception('Status update failed for appointment %s.', appointment_id)
            result.errors.append(SweepError(appointment_id=appointment_id, message=str(exc)))

    logger.info(
        'Status sweep at %s: %s changed, %s failed.',
        now.isoformat(timespec='minutes'),
        result.changed,
        len(result.errors),
    )
    return result


class StatusScheduler:
    """Runs the status sweep on an APScheduler cron trigger."""

    def __init__(self, session_factory=SessionLocal, clock=None, interval_minutes: int | None = None):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.interval_minutes = interval_minutes or config.STATUS_SWEEP_INTERVAL_MINUTES
        if self.interval_minutes not in config.SWEEP_INTERVAL_CHOICES:
            raise ValueError(
                f"Sweep interval must be one of {sorted(config.SWEEP_INTERVAL_CHOICES)} minutes, "
                f"got {self.interval_minutes}."
            )
        self.scheduler = BackgroundScheduler()
        self._stop_requested = Event()
        self._is_started = False

    def start(self) -> None:
        if self._is_started:
            logger.warning("Status scheduler is already started")
            return

        self._stop_requested.clear()
        self.scheduler.add_job(
            self.run_once,
            CronTrigger(minute=f"*/{self.interval_minutes}", second=0),
            id=STATUS_SWEEP_JOB_ID,
            name="Appointment status sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        self.scheduler.start()
        self._is_started = True
        logger.info("Status scheduler started (every %s minutes)", self.interval_minutes)

    def stop(self) -> None:
        """Stop scheduling sweeps, waiting for an in-flight appointment evaluation to finish."""
        if not self._is_started:
            return

        self._stop_requested.set()
        self.scheduler.shutdown(wait=True)
        self._is_started = False
        logger.info("Status scheduler stopped")

    def run_once(self) -> SweepResult:
        now = self.clock.now()
        db = self.session_factory()
        try:
            result = run_status_sweep(db, now, should_stop=self._stop_requested.is_set)
        finally:
            db.close()

        discard_before(now.date())
        return result


def get_status_scheduler() -> StatusScheduler:
    global _status_scheduler
    if _status_scheduler is None:
        _status_scheduler = StatusScheduler()
    return _status_scheduler


def start_status_scheduler() -> None:
    get_status_scheduler().start()


def stop_status_scheduler() -> None:
    global _status_scheduler
    if _status_scheduler:
        _status_scheduler.stop()
        _status_scheduler = None
