"""Appointment model definitions."""

import enum
from datetime import datetime, timedelta

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship
from petcare.database import Base
from petcare.models.pet import Pet

APPOINTMENT_DURATION_MINUTES = 45


class AppointmentStatus(str, enum.Enum):
    WAITING_FOR_APPROVAL = "WAITING_FOR_APPROVAL"
    APPROVED = "APPROVED"
    NOT_APPROVED = "NOT_APPROVED"
    CANCELLED = "CANCELLED"
    UP_COMING = "UP_COMING"
    ON_GOING = "ON_GOING"
    COMPLETED = "COMPLETED"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.NOT_APPROVED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.COMPLETED,
})

# Cancelled and declined appointments do not occupy the vet's calendar.
FREE_SLOT_STATUSES = frozenset({
    AppointmentStatus.NOT_APPROVED,
    AppointmentStatus.CANCELLED,
})


class Appointment(Base):
    """Represents a visit booked by a patient with a veterinarian.

    `status` is only written by petcare.services.lifecycle.
    """
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    appointment_no = Column(String, unique=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), index=True)
    veterinarian_id = Column(Integer, ForeignKey("users.id"), index=True)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    status = Column(Enum(AppointmentStatus, native_enum=False, length=32), nullable=False)
    reason = Column(String)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    pets = relationship(
        Pet,
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="Pet.id",
    )

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.date, self.time)

    @property
    def end_datetime(self) -> datetime:
        return self.start_datetime + timedelta(minutes=APPOINTMENT_DURATION_MINUTES)
