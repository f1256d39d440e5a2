"""Appointment status state machine.

Every write to ``Appointment.status`` goes through this module. Manual actions
(approve, decline, cancel, update, add pet) are only legal while an appointment
is waiting for approval. The automatic rule moves appointments forward as the
clock passes their start and end times and is applied by the status sweep.
"""

import logging
import random
from datetime import date, datetime, time

from petcare.core.clock import SystemClock
from petcare.models.appointment import Appointment, AppointmentStatus
from petcare.models.pet import Pet
from petcare.services.appointment_store import AppointmentStore
from petcare.services.availability import ensure_slot_available
from petcare.services.errors import IllegalTransitionError, NotFoundError, SlotUnavailableError
from petcare.services.slot_locks import slot_lock

logger = logging.getLogger(__name__)

INITIAL_STATUS = AppointmentStatus.WAITING_FOR_APPROVAL


def next_automatic_status(appointment: Appointment, now: datetime) -> AppointmentStatus | None:
    """Status the appointment should move to at ``now``, or None to leave it alone.

    Approved appointments whose start time has already passed stay APPROVED.
    """
    start = appointment.start_datetime
    end = appointment.end_datetime
    status = appointment.status

    if status == AppointmentStatus.APPROVED:
        if now < start:
            return AppointmentStatus.UP_COMING
    elif status == AppointmentStatus.UP_COMING:
        if start <= now < end:
            return AppointmentStatus.ON_GOING
    elif status == AppointmentStatus.ON_GOING:
        if now >= end:
            return AppointmentStatus.COMPLETED
    elif status == AppointmentStatus.WAITING_FOR_APPROVAL:
        if now > start:
            return AppointmentStatus.NOT_APPROVED
    return None


def generate_appointment_no(store: AppointmentStore) -> str:
    while True:
        candidate = str(random.randint(10 ** 9, 10 ** 10 - 1))
        if not store.exists_appointment_no(candidate):
            return candidate


def open_appointment(
    store: AppointmentStore,
    patient_id: int,
    veterinarian_id: int,
    appointment_date: date,
    appointment_time: time,
    reason: str | None,
    pets: list[Pet],
) -> Appointment:
    """Build a new, unsaved appointment in the initial status."""
    return Appointment(
        appointment_no=generate_appointment_no(store),
        patient_id=patient_id,
        veterinarian_id=veterinarian_id,
        date=appointment_date,
        time=appointment_time.replace(second=0, microsecond=0),
        reason=reason,
        status=INITIAL_STATUS,
        pets=list(pets),
    )


class AppointmentLifecycle:
    def __init__(self, store: AppointmentStore, clock=None):
        self.store = store
        self.clock = clock or SystemClock()

    def get(self, appointment_id: int, for_update: bool = False) -> Appointment:
        appointment = self.store.find_by_id(appointment_id, for_update=for_update)
        if appointment is None:
            raise NotFoundError('Appointment not found.')
        return appointment

    def approve(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.APPROVED, 'approve')

    def decline(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.NOT_APPROVED, 'decline')

    def cancel(self, appointment_id: int) -> Appointment:
        return self._transition(appointment_id, AppointmentStatus.CANCELLED, 'cancel')

    def update(
        self,
        appointment_id: int,
        new_date: date,
        new_time: time,
        new_reason: str | None,
    ) -> Appointment:
        veterinarian_id = self.get(appointment_id).veterinarian_id

        with slot_lock(veterinarian_id, new_date):
            self.store.lock_veterinarian(veterinarian_id)
            appointment = self.get(appointment_id, for_update=True)
            self._require_waiting(appointment, 'update')
            try:
                ensure_slot_available(
                    self.store,
                    veterinarian_id,
                    new_date,
                    new_time,
                    self.clock.now(),
                    exclude_id=appointment.id,
                )
            except SlotUnavailableError:
                self.store.rollback()
                raise

            appointment.date = new_date
            appointment.time = new_time.replace(second=0, microsecond=0)
            appointment.reason = new_reason
            saved = self.store.save(appointment)

        logger.info('Appointment %s moved to %s %s.', saved.id, saved.date, saved.time)
        return saved

    def add_pet(self, appointment_id: int, pet: Pet) -> Appointment:
        appointment = self.get(appointment_id, for_update=True)
        self._require_waiting(appointment, 'add a pet to')
        appointment.pets.append(pet)
        return self.store.save(appointment)

    def advance_status(self, appointment_id: int, now: datetime) -> bool:
        """Apply the automatic rule to one appointment; returns whether its status changed."""
        appointment = self.get(appointment_id, for_update=True)
        new_status = next_automatic_status(appointment, now)

        if new_status is None:
            # Releases the row lock taken by the read.
            self.store.rollback()
            return False

        previous_status = appointment.status
        appointment.status = new_status
        self.store.save(appointment)
        logger.debug('Appointment %s advanced from %s to %s.', appointment_id, previous_status.value, new_status.value)
        return True

    def status_summary(self) -> list[dict]:
        counts = self.store.status_counts()
        return [
            {'name': status.value, 'value': counts[status]}
            for status in AppointmentStatus
            if counts.get(status, 0) > 0
        ]

    def _transition(self, appointment_id: int, target: AppointmentStatus, action: str) -> Appointment:
        appointment = self.get(appointment_id, for_update=True)
        self._require_waiting(appointment, action)
        appointment.status = target
        saved = self.store.save(appointment)
        logger.info('Appointment %s set to %s.', saved.id, target.value)
        return saved

    def _require_waiting(self, appointment: Appointment, action: str) -> None:
        status = appointment.status
        if status != AppointmentStatus.WAITING_FOR_APPROVAL:
            self.store.rollback()
            raise IllegalTransitionError(f"Cannot {action} an appointment that is {status.value}.")
