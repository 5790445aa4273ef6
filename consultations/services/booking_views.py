"""
Assembles a viewer's consultation bookings into upcoming and past views.

Buyers see the seller they booked with; sellers see the buyer who booked.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultations.core.exceptions import PersistenceFailure
from consultations.models.booking import ConsultationBooking
from consultations.models.profile import Profile
from consultations.models.slot import ConsultationSlot  # noqa: F401

logger = logging.getLogger(__name__)

VIEWER_ROLES = ('buyer', 'seller')
UPCOMING_STATUSES = ('pending', 'confirmed')


@dataclass(frozen=True)
class CounterpartProfile:
    id: str
    full_name: str
    email: str
    display_name: str | None = None
    profile_picture_url: str | None = None


@dataclass(frozen=True)
class BookingView:
    booking: ConsultationBooking
    counterpart: CounterpartProfile


@dataclass
class BookingViews:
    upcoming: Iterator[BookingView]
    past: Iterator[BookingView]


def placeholder_profile(profile_id: str, label: str) -> CounterpartProfile:
    name = f'{label} ({profile_id[:8]}...)'
    return CounterpartProfile(
        id=profile_id,
        full_name=name,
        email='Email not available',
        display_name=name if label == 'Seller' else None,
    )


def is_upcoming(booking: ConsultationBooking, today: date) -> bool:
    return booking.booking_date >= today and booking.status in UPCOMING_STATUSES


def _counterpart_id(booking: ConsultationBooking, role: str) -> str:
    return booking.seller_id if role == 'buyer' else booking.buyer_id


def _load_counterparts(db: Session, role: str, counterpart_ids: set[str]) -> dict[str, CounterpartProfile]:
    label = 'Seller' if role == 'buyer' else 'Buyer'
    if not counterpart_ids:
        return {}

    try:
        profiles = db.query(Profile).filter(Profile.id.in_(counterpart_ids)).all()
    except SQLAlchemyError:
        # Profile lookup is cosmetic; bookings still render with placeholders.
        logger.exception('Error fetching %s profiles', label.lower())
        db.rollback()
        profiles = []

    found = {
        profile.id: CounterpartProfile(
            id=profile.id,
            full_name=profile.full_name or profile.display_name or profile.email or '',
            email=profile.email or 'Email not available',
            display_name=profile.display_name,
            profile_picture_url=profile.profile_picture_url,
        )
        for profile in profiles
    }
    return {
        profile_id: found.get(profile_id) or placeholder_profile(profile_id, label)
        for profile_id in counterpart_ids
    }


def _sort_key(view: BookingView) -> tuple[date, time]:
    return view.booking.booking_date, view.booking.start_time


def assemble_booking_views(
    db: Session,
    role: str,
    viewer_id: str,
    today: date | None = None,
    statuses: list[str] | None = None,
) -> BookingViews:
    """
    Fetch the viewer's bookings, join the other party's profile and split
    them into upcoming and past.

    Upcoming is ascending by date then start time. Past is most recent
    first. Both sides are single-pass iterators; upcoming is filtered lazily,
    past has to be sorted up front.
    """
    if role not in VIEWER_ROLES:
        raise ValueError(f'Unknown viewer role: {role}')

    today = today or date.today()
    owner_column = ConsultationBooking.buyer_id if role == 'buyer' else ConsultationBooking.seller_id

    try:
        query = db.query(ConsultationBooking).filter(owner_column == viewer_id)
        if statuses:
            query = query.filter(ConsultationBooking.status.in_(statuses))
        bookings = query.order_by(
            ConsultationBooking.booking_date.asc(),
            ConsultationBooking.start_time.asc(),
        ).all()
    except SQLAlchemyError as exc:
        logger.exception('Error fetching consultation bookings for %s %s', role, viewer_id)
        raise PersistenceFailure('Failed to load consultation bookings.') from exc

    counterparts = _load_counterparts(db, role, {_counterpart_id(booking, role) for booking in bookings})
    views = [BookingView(booking, counterparts[_counterpart_id(booking, role)]) for booking in bookings]

    upcoming = (view for view in views if is_upcoming(view.booking, today))
    past = sorted(
        (view for view in views if not is_upcoming(view.booking, today)),
        key=_sort_key,
        reverse=True,
    )

    return BookingViews(upcoming=upcoming, past=iter(past))
