"""Bookable start times for veterinarians.

Candidates are laid on a fixed clinic-wide grid between opening time and the
last start that still leaves room for an appointment plus its buffer before
closing. Same-day candidates must also respect the minimum lead time.
"""

from datetime import date, datetime, time, timedelta

from petcare.models.appointment import Appointment
from petcare.models.user import User
from petcare.services.appointment_store import AppointmentStore
from petcare.services.errors import NotFoundError, SlotUnavailableError
from petcare.services.overlap import conflicts_with_any

OPEN_TIME = time(9, 0)
CLOSING_TIME = time(21, 0)
UNAVAILABLE_BEFORE_CLOSING_MINUTES = 55
SLOT_INCREMENT_MINUTES = 30
MINIMUM_LEAD_HOURS = 2


def latest_start_limit() -> time:
    """Exclusive upper bound for appointment start times."""
    closing = datetime.combine(date.min, CLOSING_TIME)
    return (closing - timedelta(minutes=UNAVAILABLE_BEFORE_CLOSING_MINUTES)).time()


def iterate_slot_starts() -> list[time]:
    slots: list[time] = []
    current = datetime.combine(date.min, OPEN_TIME)
    limit = datetime.combine(date.min, latest_start_limit())

    while current < limit:
        slots.append(current.time())
        current += timedelta(minutes=SLOT_INCREMENT_MINUTES)

    return slots


def is_within_working_hours(slot_time: time) -> bool:
    return OPEN_TIME <= slot_time < latest_start_limit()


def meets_lead_time(slot_date: date, slot_time: time, now: datetime) -> bool:
    return datetime.combine(slot_date, slot_time) >= now + timedelta(hours=MINIMUM_LEAD_HOURS)


def filter_available_slots(appointments: list[Appointment], slot_date: date, now: datetime) -> list[time]:
    return [
        slot_time
        for slot_time in iterate_slot_starts()
        if meets_lead_time(slot_date, slot_time, now)
        and not conflicts_with_any(appointments, slot_time)
    ]


def available_slots(store: AppointmentStore, veterinarian_id: int, slot_date: date, now: datetime) -> list[time]:
    appointments = store.find_by_veterinarian_and_date(veterinarian_id, slot_date)
    return filter_available_slots(appointments, slot_date, now)


def ensure_slot_available(
    store: AppointmentStore,
    veterinarian_id: int,
    slot_date: date,
    slot_time: time,
    now: datetime,
    exclude_id: int | None = None,
) -> None:
    """Raise SlotUnavailableError unless the vet can take an appointment at this date and time.

    Callers must hold the booking lock for ``(veterinarian_id, slot_date)``.
    """
    slot_time = slot_time.replace(second=0, microsecond=0)

    if not is_within_working_hours(slot_time):
        raise SlotUnavailableError(
            f'Appointments can only start between {OPEN_TIME:%H:%M} and {latest_start_limit():%H:%M}.'
        )

    if not meets_lead_time(slot_date, slot_time, now):
        raise SlotUnavailableError(
            f'Appointments must be booked at least {MINIMUM_LEAD_HOURS} hours in advance.'
        )

    appointments = store.find_by_veterinarian_and_date(veterinarian_id, slot_date, exclude_id=exclude_id)
    if conflicts_with_any(appointments, slot_time):
        raise SlotUnavailableError('This time is already booked.')


def is_veterinarian_available(
    store: AppointmentStore,
    veterinarian: User,
    requested_date: date | None,
    requested_time: time | None,
) -> bool:
    if requested_date is None or requested_time is None:
        return True

    appointments = store.find_by_veterinarian_and_date(veterinarian.id, requested_date)
    return not conflicts_with_any(appointments, requested_time)


def find_available_veterinarians(
    store: AppointmentStore,
    specialization: str,
    requested_date: date | None = None,
    requested_time: time | None = None,
) -> list[User]:
    if not store.specialization_exists(specialization):
        raise NotFoundError(f"No veterinarian with specialization '{specialization}' was found.")

    return [
        veterinarian
        for veterinarian in store.find_veterinarians(specialization)
        if is_veterinarian_available(store, veterinarian, requested_date, requested_time)
    ]
