from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from petcare.core.clock import SystemClock
from petcare.database import ensure_appointment_schema
from petcare.services.errors import (
    AppointmentError,
    BookingNotAllowedError,
    IllegalTransitionError,
    NotFoundError,
    SlotUnavailableError,
    StoreError,
)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'

_ERROR_STATUS_CODES = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    IllegalTransitionError: status.HTTP_409_CONFLICT,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
    BookingNotAllowedError: status.HTTP_403_FORBIDDEN,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_clock = SystemClock()


def get_clock():
    return _clock


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def to_http_exception(exc: AppointmentError) -> HTTPException:
    status_code = _ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, StoreError):
        return HTTPException(status_code=status_code, detail=DATABASE_UNAVAILABLE_DETAIL)
    return HTTPException(status_code=status_code, detail=str(exc))
