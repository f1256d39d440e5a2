"""Session-backed persistence for appointments and the veterinarians they reference."""

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from petcare.models.appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES
from petcare.models.user import User, VET_ROLE
from petcare.services.errors import StoreError

logger = logging.getLogger(__name__)


class AppointmentStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, appointment_id: int, for_update: bool = False) -> Appointment | None:
        query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return self._run(query.first)

    def find_all_ids(self) -> list[int]:
        rows = self._run(self.db.query(Appointment.id).order_by(Appointment.id.asc()).all)
        return [appointment_id for (appointment_id,) in rows]

    def find_by_veterinarian_and_date(
        self,
        veterinarian_id: int,
        appointment_date: date,
        exclude_id: int | None = None,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.veterinarian_id == veterinarian_id,
            Appointment.date == appointment_date,
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return self._run(query.order_by(Appointment.time.asc()).all)

    def find_by_user(self, user_id: int) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            (Appointment.patient_id == user_id) | (Appointment.veterinarian_id == user_id)
        ).order_by(Appointment.date.asc(), Appointment.time.asc())
        return self._run(query.all)

    def count_active_for_patient(self, patient_id: int) -> int:
        query = self.db.query(Appointment).filter(
            Appointment.patient_id == patient_id,
            Appointment.status.not_in(list(TERMINAL_STATUSES)),
        )
        return self._run(query.count)

    def exists_appointment_no(self, appointment_no: str) -> bool:
        query = self.db.query(Appointment.id).filter(Appointment.appointment_no == appointment_no)
        return self._run(query.first) is not None

    def status_counts(self) -> dict[AppointmentStatus, int]:
        query = self.db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status)
        return {status: count for status, count in self._run(query.all)}

    def get_user(self, user_id: int) -> User | None:
        return self._run(self.db.query(User).filter(User.id == user_id).first)

    def lock_veterinarian(self, veterinarian_id: int) -> User | None:
        """Row-lock the veterinarian so concurrent bookings for them run one at a time."""
        query = self.db.query(User).filter(
            User.id == veterinarian_id,
            User.role == VET_ROLE,
            User.is_enabled.is_(True),
        ).with_for_update()
        return self._run(query.first)

    def lock_patient(self, patient_id: int) -> User | None:
        """Row-lock the patient so their active-booking count stays accurate until the booking commits."""
        query = self.db.query(User).filter(User.id == patient_id).with_for_update()
        return self._run(query.first)

    def find_veterinarians(self, specialization: str) -> list[User]:
        query = self.db.query(User).filter(
            User.role == VET_ROLE,
            User.is_enabled.is_(True),
            func.lower(User.specialization) == specialization.strip().lower(),
        ).order_by(User.id.asc())
        return self._run(query.all)

    def specialization_exists(self, specialization: str) -> bool:
        query = self.db.query(User.id).filter(
            User.role == VET_ROLE,
            func.lower(User.specialization) == specialization.strip().lower(),
        )
        return self._run(query.first) is not None

    def specializations(self) -> list[str]:
        query = self.db.query(User.specialization).filter(
            User.role == VET_ROLE,
            User.is_enabled.is_(True),
            User.specialization.is_not(None),
        ).distinct().order_by(User.specialization.asc())
        return [specialization for (specialization,) in self._run(query.all)]

    def save(self, appointment: Appointment) -> Appointment:
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Saving appointment %s failed.', appointment.id)
            raise StoreError('Database unavailable. Verify DATABASE_URL and Postgres credentials.') from exc

        return appointment

    def rollback(self) -> None:
        self.db.rollback()

    def _run(self, call):
        try:
            return call()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError('Database unavailable. Verify DATABASE_URL and Postgres credentials.') from exc
