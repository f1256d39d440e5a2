from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from petcare.auth.dependencies import get_current_user
from petcare.database import get_db
from petcare.models.appointment import AppointmentStatus
from petcare.models.pet import Pet
from petcare.models.user import User
from petcare.routes.shared import ensure_database_ready, get_clock, to_http_exception
from petcare.services.appointment_store import AppointmentStore
from petcare.services.booking import BookingService
from petcare.services.errors import AppointmentError
from petcare.services.lifecycle import AppointmentLifecycle

router = APIRouter(tags=['appointments'])

MAX_REASON_LENGTH = 600
MAX_PET_AGE = 50


class PetRequest(BaseModel):
    name: str
    type: str
    color: str | None = None
    breed: str | None = None
    age: int

    @field_validator('name', 'type')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Pet name and type are required.')
        return normalized

    @field_validator('age')
    @classmethod
    def validate_age(cls, value: int) -> int:
        if value < 0 or value > MAX_PET_AGE:
            raise ValueError(f'Pet age must be between 0 and {MAX_PET_AGE}.')
        return value

    def to_model(self) -> Pet:
        return Pet(name=self.name, type=self.type, color=self.color, breed=self.breed, age=self.age)


def _normalize_reason(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_REASON_LENGTH:
        raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

    return normalized


class BookAppointmentRequest(BaseModel):
    date: date
    time: time
    reason: str | None = None
    pets: list[PetRequest]

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)

    @field_validator('pets')
    @classmethod
    def validate_pets(cls, value: list[PetRequest]) -> list[PetRequest]:
        if not value:
            raise ValueError('At least one pet is required.')
        return value


class UpdateAppointmentRequest(BaseModel):
    date: date
    time: time
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_reason(value)


class PetResponse(BaseModel):
    id: int
    name: str
    type: str
    color: str | None = None
    breed: str | None = None
    age: int

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    appointment_no: str
    patient_id: int
    veterinarian_id: int
    date: date
    time: time
    status: AppointmentStatus
    reason: str | None = None
    created_at: datetime
    pets: list[PetResponse]

    class Config:
        from_attributes = True


class StatusSummaryResponse(BaseModel):
    name: str
    value: int


@router.post('/book', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookAppointmentRequest,
    veterinarian_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    ensure_database_ready()

    try:
        return BookingService(AppointmentStore(db), clock).create_appointment(
            patient_id=current_user.id,
            veterinarian_id=veterinarian_id,
            appointment_date=data.date,
            appointment_time=data.time,
            reason=data.reason,
            pets=[pet.to_model() for pet in data.pets],
        )
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.get('/summary', response_model=list[StatusSummaryResponse])
def get_appointment_summary(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).status_summary()
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.get('/users/{user_id}', response_model=list[AppointmentResponse])
def list_user_appointments(user_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return BookingService(AppointmentStore(db)).get_user_appointments(user_id)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).get(appointment_id)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/update', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db), clock).update(
            appointment_id,
            new_date=data.date,
            new_time=data.time,
            new_reason=data.reason,
        )
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/pets', response_model=AppointmentResponse)
def add_pet_to_appointment(appointment_id: int, data: PetRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).add_pet(appointment_id, data.to_model())
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/approve', response_model=AppointmentResponse)
def approve_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).approve(appointment_id)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/decline', response_model=AppointmentResponse)
def decline_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).decline(appointment_id)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.put('/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentLifecycle(AppointmentStore(db)).cancel(appointment_id)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc
