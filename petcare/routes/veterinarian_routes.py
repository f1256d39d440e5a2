from datetime import date, time

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from petcare.database import get_db
from petcare.routes.shared import ensure_database_ready, get_clock, to_http_exception
from petcare.services.appointment_store import AppointmentStore
from petcare.services.availability import available_slots, find_available_veterinarians
from petcare.services.errors import AppointmentError, NotFoundError

router = APIRouter(tags=['veterinarians'])


class VeterinarianResponse(BaseModel):
    id: int
    email: str
    specialization: str | None = None

    class Config:
        from_attributes = True


@router.get('/specializations', response_model=list[str])
def list_specializations(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return AppointmentStore(db).specializations()
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.get('/available', response_model=list[VeterinarianResponse])
def list_available_veterinarians(
    specialization: str = Query(..., min_length=1),
    requested_date: date | None = Query(default=None, alias='date'),
    requested_time: time | None = Query(default=None, alias='time'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return find_available_veterinarians(AppointmentStore(db), specialization, requested_date, requested_time)
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{veterinarian_id}/available-times', response_model=list[time])
def list_available_times(
    veterinarian_id: int,
    requested_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    ensure_database_ready()

    store = AppointmentStore(db)
    try:
        veterinarian = store.get_user(veterinarian_id)
        if veterinarian is None or not veterinarian.is_bookable_veterinarian:
            raise NotFoundError('Veterinarian not found.')

        return available_slots(store, veterinarian_id, requested_date, clock.now())
    except AppointmentError as exc:
        raise to_http_exception(exc) from exc
