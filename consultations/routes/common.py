from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from consultations.core.exceptions import (
    BookingNotFound,
    ConsultationError,
    InvalidDuration,
    InvalidStatusTransition,
    InvalidWindow,
    NoActiveBooking,
    NotPermitted,
    OwnSlotBooking,
    PastDate,
    PersistenceFailure,
    SlotInUse,
    SlotNotFound,
    SlotUnavailable,
)
from consultations.database import ensure_booking_schema, ensure_profile_schema, ensure_slot_schema

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and Postgres credentials.'

ERROR_STATUS_CODES = {
    InvalidWindow: status.HTTP_400_BAD_REQUEST,
    PastDate: status.HTTP_400_BAD_REQUEST,
    InvalidDuration: status.HTTP_400_BAD_REQUEST,
    OwnSlotBooking: status.HTTP_403_FORBIDDEN,
    NotPermitted: status.HTTP_403_FORBIDDEN,
    SlotNotFound: status.HTTP_404_NOT_FOUND,
    BookingNotFound: status.HTTP_404_NOT_FOUND,
    SlotUnavailable: status.HTTP_409_CONFLICT,
    SlotInUse: status.HTTP_409_CONFLICT,
    NoActiveBooking: status.HTTP_409_CONFLICT,
    InvalidStatusTransition: status.HTTP_409_CONFLICT,
    PersistenceFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def ensure_database_ready() -> None:
    try:
        ensure_profile_schema()
        ensure_slot_schema()
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def to_http_exception(exc: ConsultationError) -> HTTPException:
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=exc.message)
