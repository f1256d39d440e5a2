"""Conflict test between a booked appointment and a requested time window."""

from datetime import date, datetime, time, timedelta

from petcare.models.appointment import APPOINTMENT_DURATION_MINUTES, Appointment, FREE_SLOT_STATUSES

UNAVAILABLE_BEFORE_START_MINUTES = 10
UNAVAILABLE_AFTER_END_MINUTES = 10

# Anchor for time-of-day arithmetic; all windows are within a single clinic day.
_REFERENCE_DAY = date(2000, 1, 1)


def _on_reference_day(value: time) -> datetime:
    return datetime.combine(_REFERENCE_DAY, value)


def requested_window(start: time) -> tuple[datetime, datetime]:
    begin = _on_reference_day(start)
    return begin, begin + timedelta(minutes=APPOINTMENT_DURATION_MINUTES)


def unavailable_window(existing: Appointment) -> tuple[datetime, datetime]:
    existing_start, existing_end = requested_window(existing.time)
    return (
        existing_start - timedelta(minutes=UNAVAILABLE_BEFORE_START_MINUTES),
        existing_end + timedelta(minutes=UNAVAILABLE_AFTER_END_MINUTES),
    )


def conflicts(existing: Appointment, candidate_start: time, candidate_end: time) -> bool:
    """Whether ``[candidate_start, candidate_end)`` collides with ``existing`` and its buffers.

    Cancelled and declined appointments never conflict. A candidate that ends
    exactly where the buffered window begins, or starts exactly where it ends,
    is not a conflict.
    """
    if existing.status in FREE_SLOT_STATUSES:
        return False

    blocked_start, blocked_end = unavailable_window(existing)
    requested_start = _on_reference_day(candidate_start)
    requested_end = _on_reference_day(candidate_end)
    if requested_end < requested_start:
        requested_end += timedelta(days=1)

    return requested_start < blocked_end and requested_end > blocked_start


def conflicts_with_any(appointments: list[Appointment], candidate_start: time) -> bool:
    requested_start, requested_end = requested_window(candidate_start)
    return any(
        conflicts(existing, requested_start.time(), requested_end.time())
        for existing in appointments
    )
