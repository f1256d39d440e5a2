from datetime import datetime, time

import pytest

from conftest import NOW, TODAY, TOMORROW, YESTERDAY, new_pet
from petcare.core.clock import FixedClock
from petcare.models.appointment import AppointmentStatus
from petcare.models.user import VET_ROLE
from petcare.services.appointment_store import AppointmentStore
from petcare.services.availability import (
    available_slots,
    ensure_slot_available,
    find_available_veterinarians,
    iterate_slot_starts,
    latest_start_limit,
    meets_lead_time,
)
from petcare.services.booking import BookingService
from petcare.services.errors import NotFoundError, SlotUnavailableError


def test_iterate_slot_starts_covers_working_day_in_half_hour_steps() -> None:
    slots = iterate_slot_starts()

    assert latest_start_limit() == time(20, 5)
    assert slots[0] == time(9, 0)
    assert slots[1] == time(9, 30)
    assert slots[-1] == time(20, 0)
    assert len(slots) == 23


@pytest.mark.parametrize(
    ('slot_time', 'expected'),
    [
        (time(11, 59), False),
        (time(12, 0), True),
        (time(12, 1), True),
    ],
)
def test_meets_lead_time_requires_two_hours_from_now(slot_time: time, expected: bool) -> None:
    assert meets_lead_time(TODAY, slot_time, NOW) is expected


def test_meets_lead_time_is_always_true_for_future_days_and_false_for_past_days() -> None:
    assert meets_lead_time(TOMORROW, time(9, 0), NOW) is True
    assert meets_lead_time(YESTERDAY, time(20, 0), NOW) is False


def test_available_slots_returns_full_grid_for_free_future_day(db, vet) -> None:
    slots = available_slots(AppointmentStore(db), vet.id, TOMORROW, NOW)

    assert slots == iterate_slot_starts()


def test_available_slots_today_skips_slots_inside_lead_time(db, vet) -> None:
    slots = available_slots(AppointmentStore(db), vet.id, TODAY, datetime(2026, 1, 5, 10, 1))

    assert slots[0] == time(12, 30)
    assert time(12, 0) not in slots


def test_available_slots_late_in_the_day_is_empty(db, vet) -> None:
    assert available_slots(AppointmentStore(db), vet.id, TODAY, datetime(2026, 1, 5, 18, 30)) == []


def test_available_slots_for_past_day_is_empty(db, vet) -> None:
    assert available_slots(AppointmentStore(db), vet.id, YESTERDAY, NOW) == []


def test_available_slots_excludes_slots_around_booked_appointment(db, make_appointment, vet) -> None:
    make_appointment(appointment_date=TOMORROW, appointment_time=time(10, 0), status=AppointmentStatus.APPROVED)

    slots = available_slots(AppointmentStore(db), vet.id, TOMORROW, NOW)

    assert time(9, 0) in slots
    assert time(9, 30) not in slots
    assert time(10, 0) not in slots
    assert time(10, 30) not in slots
    assert time(11, 0) in slots
    assert slots == sorted(slots)


def test_available_slots_ignores_cancelled_and_other_vets(db, make_appointment, make_user, vet) -> None:
    other_vet = make_user(VET_ROLE, specialization='Surgeon')
    make_appointment(appointment_date=TOMORROW, appointment_time=time(10, 0), status=AppointmentStatus.CANCELLED)
    make_appointment(appointment_date=TOMORROW, appointment_time=time(11, 0), veterinarian=other_vet)

    slots = available_slots(AppointmentStore(db), vet.id, TOMORROW, NOW)

    assert slots == iterate_slot_starts()


def test_available_slot_is_bookable_and_then_no_longer_offered(db, vet, patient) -> None:
    store = AppointmentStore(db)
    slots = available_slots(store, vet.id, TOMORROW, NOW)

    appointment = BookingService(store, FixedClock(NOW)).create_appointment(
        patient.id, vet.id, TOMORROW, slots[3], 'Vaccination', [new_pet()]
    )

    assert appointment.status == AppointmentStatus.WAITING_FOR_APPROVAL
    assert slots[3] not in available_slots(store, vet.id, TOMORROW, NOW)


@pytest.mark.parametrize(
    ('slot_time', 'message'),
    [
        (time(8, 30), 'Appointments can only start between 09:00 and 20:05.'),
        (time(20, 5), 'Appointments can only start between 09:00 and 20:05.'),
        (time(11, 30), 'Appointments must be booked at least 2 hours in advance.'),
    ],
)
def test_ensure_slot_available_rejects_hours_and_lead_time(db, vet, slot_time: time, message: str) -> None:
    with pytest.raises(SlotUnavailableError) as exception_info:
        ensure_slot_available(AppointmentStore(db), vet.id, TODAY, slot_time, NOW)

    assert str(exception_info.value) == message


def test_ensure_slot_available_rejects_conflict_unless_excluded(db, make_appointment, vet) -> None:
    existing = make_appointment(appointment_date=TOMORROW, appointment_time=time(15, 0))
    store = AppointmentStore(db)

    with pytest.raises(SlotUnavailableError):
        ensure_slot_available(store, vet.id, TOMORROW, time(15, 20), NOW)

    ensure_slot_available(store, vet.id, TOMORROW, time(15, 20), NOW, exclude_id=existing.id)


def test_find_available_veterinarians_filters_booked_vets(db, make_appointment, make_user, vet) -> None:
    free_vet = make_user(VET_ROLE, specialization='Surgeon')
    make_user(VET_ROLE, specialization='Dentist')
    make_user(VET_ROLE, specialization='Surgeon', is_enabled=False)
    make_appointment(appointment_date=TOMORROW, appointment_time=time(10, 0), status=AppointmentStatus.UP_COMING)

    available = find_available_veterinarians(AppointmentStore(db), 'surgeon', TOMORROW, time(10, 30))

    assert [veterinarian.id for veterinarian in available] == [free_vet.id]


def test_find_available_veterinarians_without_date_returns_all_enabled(db, make_user, vet) -> None:
    other_vet = make_user(VET_ROLE, specialization='Surgeon')

    available = find_available_veterinarians(AppointmentStore(db), 'Surgeon')

    assert [veterinarian.id for veterinarian in available] == [vet.id, other_vet.id]


def test_find_available_veterinarians_rejects_unknown_specialization(db, vet) -> None:
    with pytest.raises(NotFoundError):
        find_available_veterinarians(AppointmentStore(db), 'Cardiologist', TOMORROW, time(10, 0))
