"""Booking entry point: validates the request and creates appointments atomically per patient, vet and day."""

import logging
from datetime import date, time

from petcare.core import config
from petcare.core.clock import SystemClock
from petcare.models.appointment import Appointment
from petcare.models.pet import Pet
from petcare.services.appointment_store import AppointmentStore
from petcare.services.availability import ensure_slot_available
from petcare.services.errors import BookingNotAllowedError, NotFoundError, SlotUnavailableError
from petcare.services.lifecycle import open_appointment
from petcare.services.slot_locks import patient_lock, slot_lock

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, store: AppointmentStore, clock=None, max_active_appointments: int | None = None):
        self.store = store
        self.clock = clock or SystemClock()
        if max_active_appointments is None:
            max_active_appointments = config.MAX_ACTIVE_APPOINTMENTS
        self.max_active_appointments = max_active_appointments

    def create_appointment(
        self,
        patient_id: int,
        veterinarian_id: int,
        appointment_date: date,
        appointment_time: time,
        reason: str | None,
        pets: list[Pet],
    ) -> Appointment:
        sender = self.store.get_user(patient_id)
        recipient = self.store.get_user(veterinarian_id)

        if sender is None or recipient is None:
            raise NotFoundError('Sender or recipient not found.')

        if sender.is_veterinarian:
            raise BookingNotAllowedError('Veterinarians cannot book appointments.')

        if not recipient.is_bookable_veterinarian:
            raise NotFoundError('Veterinarian not found.')

        if not pets:
            raise BookingNotAllowedError('At least one pet is required.')

        with patient_lock(sender.id):
            self.store.lock_patient(sender.id)
            if self.store.count_active_for_patient(sender.id) >= self.max_active_appointments:
                self.store.rollback()
                raise BookingNotAllowedError(
                    f'You already have {self.max_active_appointments} active appointments. '
                    'A new one can be booked once one of them is over.'
                )

            with slot_lock(veterinarian_id, appointment_date):
                if self.store.lock_veterinarian(veterinarian_id) is None:
                    self.store.rollback()
                    raise NotFoundError('Veterinarian not found.')

                try:
                    ensure_slot_available(
                        self.store,
                        veterinarian_id,
                        appointment_date,
                        appointment_time,
                        self.clock.now(),
                    )
                except SlotUnavailableError:
                    self.store.rollback()
                    raise

                appointment = open_appointment(
                    self.store,
                    patient_id=sender.id,
                    veterinarian_id=veterinarian_id,
                    appointment_date=appointment_date,
                    appointment_time=appointment_time,
                    reason=reason,
                    pets=pets,
                )
                saved = self.store.save(appointment)

        logger.info(
            'Appointment %s booked with veterinarian %s on %s at %s.',
            saved.id,
            veterinarian_id,
            saved.date,
            saved.time,
        )
        return saved

    def get_user_appointments(self, user_id: int) -> list[Appointment]:
        if self.store.get_user(user_id) is None:
            raise NotFoundError('User not found.')
        return self.store.find_by_user(user_id)
