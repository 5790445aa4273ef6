from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from consultations.auth.dependencies import get_current_profile, require_role
from consultations.core import config
from consultations.core.exceptions import ConsultationError
from consultations.database import get_db
from consultations.models.profile import Profile
from consultations.routes.common import ensure_database_ready, to_http_exception
from consultations.services import booking_lifecycle, settings, slot_store
from consultations.services.slot_generator import AvailabilityWindow

router = APIRouter(tags=['slots'])


class CreateTimeBlockRequest(BaseModel):
    date: date
    start_time: time
    end_time: time

    @field_validator('start_time', 'end_time')
    @classmethod
    def truncate_seconds(cls, value: time) -> time:
        return value.replace(second=0, microsecond=0)


class BookSlotRequest(BaseModel):
    notes: str | None = None
    payment_status: Literal['paid', 'pending'] = 'paid'
    payment_intent_id: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > config.MAX_BOOKING_NOTES_LENGTH:
            raise ValueError(f'Notes must be {config.MAX_BOOKING_NOTES_LENGTH} characters or fewer.')

        return normalized


class SlotResponse(BaseModel):
    id: int
    seller_id: str
    date: date
    start_time: time
    end_time: time
    is_available: bool
    is_booked: bool

    class Config:
        from_attributes = True


class SellerSlotResponse(SlotResponse):
    booking_id: int | None = None
    booked_by: str | None = None


class TimeBlockResponse(BaseModel):
    duration_minutes: int
    slots: list[SlotResponse]


class BookingResponse(BaseModel):
    id: int
    slot_id: int | None = None
    buyer_id: str
    seller_id: str
    booking_date: date
    start_time: time
    end_time: time
    status: str
    payment_status: str
    payment_amount: Decimal
    notes: str | None = None
    meeting_link: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


@router.post('', response_model=TimeBlockResponse, status_code=status.HTTP_201_CREATED)
def create_time_block(
    data: CreateTimeBlockRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    require_role(current_profile, 'seller', 'Only sellers can create consultation slots.')
    ensure_database_ready()

    try:
        duration_minutes = settings.get_consultation_duration(db, current_profile.id)
        window = AvailabilityWindow(
            seller_id=current_profile.id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
        )
        slots = slot_store.create_slots_for_window(db, window, duration_minutes)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc

    return TimeBlockResponse(
        duration_minutes=duration_minutes,
        slots=[SlotResponse.model_validate(slot) for slot in slots],
    )


@router.get('', response_model=list[SellerSlotResponse])
def list_my_slots(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    require_role(current_profile, 'seller', 'Only sellers can manage consultation slots.')
    ensure_database_ready()

    try:
        slots = slot_store.list_seller_slots(db, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc

    responses = []
    for slot in slots:
        active_booking = slot.active_booking
        responses.append(
            SellerSlotResponse(
                id=slot.id,
                seller_id=slot.seller_id,
                date=slot.date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                is_available=slot.is_available,
                is_booked=slot.is_booked,
                booking_id=active_booking.id if active_booking else None,
                booked_by=slot.booked_by,
            )
        )
    return responses


@router.get('/sellers/{seller_id}', response_model=list[SlotResponse])
def list_seller_available_slots(
    seller_id: str,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return slot_store.list_bookable_slots(db, seller_id, viewer_id=current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/{slot_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_slot(
    slot_id: int,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        booking_lifecycle.delete_slot(db, slot_id, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{slot_id}/book', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_slot(
    slot_id: int,
    data: BookSlotRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        slot = slot_store.get_slot(db, slot_id)
        seller = settings.get_seller_profile(db, slot.seller_id) if slot else None
        price = seller.consultation_price if seller and seller.consultation_price is not None else Decimal('0')

        return booking_lifecycle.book_slot(
            db,
            slot_id,
            current_profile.id,
            payment_amount=price,
            notes=data.notes,
            payment_status=data.payment_status,
            payment_intent_id=data.payment_intent_id,
        )
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{slot_id}/cancel', response_model=BookingResponse)
def cancel_slot_booking(
    slot_id: int,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking_lifecycle.cancel_booking(db, slot_id, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc
