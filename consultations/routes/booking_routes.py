from dataclasses import asdict
from datetime import date, datetime, time
from decimal import Decimal
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from consultations.auth.dependencies import get_current_profile
from consultations.core.exceptions import ConsultationError
from consultations.database import get_db
from consultations.models.profile import Profile
from consultations.routes.common import ensure_database_ready, to_http_exception
from consultations.routes.slot_routes import BookingResponse
from consultations.services import booking_lifecycle
from consultations.services.booking_views import BookingView, assemble_booking_views
from consultations.services.meeting_status import (
    format_time_until_meeting,
    get_meeting_time_info,
    meeting_status_label,
)

router = APIRouter(tags=['bookings'])


class UpdateBookingStatusRequest(BaseModel):
    status: Literal['confirmed', 'in_progress', 'missed']


class MeetingLinkRequest(BaseModel):
    meeting_link: str

    @field_validator('meeting_link')
    @classmethod
    def validate_meeting_link(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized.startswith(('https://', 'http://')):
            raise ValueError('Meeting link must be an http(s) URL.')
        return normalized


class CounterpartResponse(BaseModel):
    id: str
    full_name: str
    email: str
    display_name: str | None = None
    profile_picture_url: str | None = None


class BookingViewResponse(BaseModel):
    id: int
    slot_id: int | None = None
    booking_date: date
    start_time: time
    end_time: time
    status: str
    payment_status: str
    payment_amount: Decimal
    notes: str | None = None
    meeting_link: str | None = None
    counterpart: CounterpartResponse
    status_label: str
    time_until_meeting: str


class BookingViewsResponse(BaseModel):
    role: str
    upcoming: list[BookingViewResponse]
    past: list[BookingViewResponse]


def build_booking_view_response(view: BookingView, now: datetime) -> BookingViewResponse:
    booking = view.booking
    return BookingViewResponse(
        id=booking.id,
        slot_id=booking.slot_id,
        booking_date=booking.booking_date,
        start_time=booking.start_time,
        end_time=booking.end_time,
        status=booking.status,
        payment_status=booking.payment_status,
        payment_amount=booking.payment_amount,
        notes=booking.notes,
        meeting_link=booking.meeting_link,
        counterpart=CounterpartResponse(**asdict(view.counterpart)),
        status_label=meeting_status_label(booking, now),
        time_until_meeting=format_time_until_meeting(get_meeting_time_info(booking, now)),
    )


@router.get('', response_model=BookingViewsResponse)
def list_my_bookings(
    role: Literal['buyer', 'seller'] | None = Query(default=None),
    booking_status: list[str] | None = Query(default=None, alias='status'),
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    viewer_role = role or ('seller' if current_profile.role == 'seller' else 'buyer')
    if viewer_role == 'seller' and current_profile.role != 'seller':
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only sellers can view bookings of their slots.',
        )

    ensure_database_ready()

    try:
        views = assemble_booking_views(db, viewer_role, current_profile.id, statuses=booking_status)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc

    now = datetime.now()
    return BookingViewsResponse(
        role=viewer_role,
        upcoming=[build_booking_view_response(view, now) for view in views.upcoming],
        past=[build_booking_view_response(view, now) for view in views.past],
    )


@router.patch('/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    data: UpdateBookingStatusRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking_lifecycle.update_booking_status(db, booking_id, data.status, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{booking_id}/meeting-link', response_model=BookingResponse)
def add_meeting_link(
    booking_id: int,
    data: MeetingLinkRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking_lifecycle.add_meeting_link(db, booking_id, data.meeting_link, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.post('/{booking_id}/complete', response_model=BookingResponse)
def complete_booking(
    booking_id: int,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return booking_lifecycle.mark_booking_completed(db, booking_id, current_profile.id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc
