"""
State transitions for a slot and its booking.

A slot moves ``unbooked -> booked`` when a buyer claims it and back to
``unbooked`` when that booking is cancelled. The slot row is the source of
truth for whether a time is taken: claiming it is a conditional update that
only succeeds while the slot is still open, so two buyers racing for the same
slot cannot both win.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultations.core import config
from consultations.core.exceptions import (
    BookingNotFound,
    InvalidStatusTransition,
    NoActiveBooking,
    NotPermitted,
    OwnSlotBooking,
    PersistenceFailure,
    SlotInUse,
    SlotNotFound,
    SlotUnavailable,
)
from consultations.models.booking import ConsultationBooking
from consultations.models.slot import ACTIVE_BOOKING_STATUSES, ConsultationSlot

logger = logging.getLogger(__name__)

BOOKING_STATUSES = ('pending', 'confirmed', 'in_progress', 'cancelled', 'completed', 'missed')
PAYMENT_STATUSES = ('pending', 'paid', 'failed', 'refunded')

# Cancellation frees the slot and completion checks the clock, so both have
# their own paths.
STATUS_TRANSITIONS = {
    'pending': {'confirmed'},
    'confirmed': {'in_progress', 'missed'},
    'in_progress': {'missed'},
    'missed': set(),
    'cancelled': set(),
    'completed': set(),
}
COMPLETABLE_STATUSES = ('confirmed', 'in_progress', 'missed')


def _load_slot(db: Session, slot_id: int) -> ConsultationSlot:
    try:
        slot = db.query(ConsultationSlot).filter(ConsultationSlot.id == slot_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load slot %s', slot_id)
        raise PersistenceFailure('Error loading slot.') from exc

    if slot is None:
        raise SlotNotFound('Consultation slot not found.')
    return slot


def _load_booking(db: Session, booking_id: int) -> ConsultationBooking:
    try:
        booking = db.query(ConsultationBooking).filter(ConsultationBooking.id == booking_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load booking %s', booking_id)
        raise PersistenceFailure('Error loading booking.') from exc

    if booking is None:
        raise BookingNotFound('Booking not found.')
    return booking


def book_slot(
    db: Session,
    slot_id: int,
    buyer_id: str,
    payment_amount: Decimal,
    notes: str | None = None,
    payment_status: str = 'paid',
    payment_intent_id: str | None = None,
) -> ConsultationBooking:
    """Claim ``slot_id`` for ``buyer_id`` and record the booking.

    A paid booking is created as ``confirmed``; any other payment state
    leaves it ``pending``.
    """
    if payment_status not in ('paid', 'pending'):
        raise InvalidStatusTransition('Only paid or pending payments can reserve a slot.')

    slot = _load_slot(db, slot_id)

    if slot.seller_id == buyer_id:
        raise OwnSlotBooking('You cannot book your own consultation slots.')

    if not slot.is_available or slot.is_booked:
        raise SlotUnavailable('Slot is no longer available.')

    booking_date = slot.date
    start_time = slot.start_time
    end_time = slot.end_time
    seller_id = slot.seller_id

    try:
        claimed = db.query(ConsultationSlot).filter(
            ConsultationSlot.id == slot_id,
            ConsultationSlot.is_available.is_(True),
            ConsultationSlot.is_booked.is_(False),
        ).update(
            {
                ConsultationSlot.is_available: False,
                ConsultationSlot.is_booked: True,
                ConsultationSlot.booked_by: buyer_id,
                ConsultationSlot.updated_at: datetime.now(),
            },
            synchronize_session=False,
        )

        if claimed == 0:
            db.rollback()
            raise SlotUnavailable('Slot is no longer available.')

        booking = ConsultationBooking(
            slot_id=slot_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            status='confirmed' if payment_status == 'paid' else 'pending',
            payment_status=payment_status,
            payment_amount=payment_amount,
            payment_intent_id=payment_intent_id,
            notes=(notes or '').strip() or None,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to book slot %s for buyer %s', slot_id, buyer_id)
        raise PersistenceFailure('Error creating booking.') from exc

    logger.info('Slot %s booked by %s (booking %s)', slot_id, buyer_id, booking.id)
    return booking


def cancel_booking(db: Session, slot_id: int, actor_id: str) -> ConsultationBooking:
    """Cancel the active booking on ``slot_id``, refund it and reopen the slot."""
    slot = _load_slot(db, slot_id)

    try:
        booking = db.query(ConsultationBooking).filter(
            ConsultationBooking.slot_id == slot_id,
            ConsultationBooking.status.in_(ACTIVE_BOOKING_STATUSES),
        ).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load bookings for slot %s', slot_id)
        raise PersistenceFailure('Error loading booking.') from exc

    if booking is None:
        raise NoActiveBooking('This slot has no active booking to cancel.')

    if actor_id not in (slot.seller_id, booking.buyer_id):
        raise NotPermitted('Only the seller or the buyer can cancel this booking.')

    try:
        booking.status = 'cancelled'
        booking.payment_status = 'refunded'
        slot.is_booked = False
        slot.is_available = True
        slot.booked_by = None
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to cancel booking on slot %s', slot_id)
        raise PersistenceFailure('Error cancelling booking.') from exc

    logger.info('Booking %s on slot %s cancelled by %s and refunded', booking.id, slot_id, actor_id)
    return booking


def delete_slot(db: Session, slot_id: int, seller_id: str) -> None:
    slot = _load_slot(db, slot_id)

    if slot.seller_id != seller_id:
        raise NotPermitted('Only the seller who owns this slot can delete it.')

    if slot.is_booked:
        raise SlotInUse('Cannot delete a booked slot. Please cancel the booking first.')

    try:
        deleted = db.query(ConsultationSlot).filter(
            ConsultationSlot.id == slot_id,
            ConsultationSlot.is_booked.is_(False),
        ).delete(synchronize_session=False)

        if deleted == 0:
            db.rollback()
            raise SlotInUse('Cannot delete a booked slot. Please cancel the booking first.')

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to delete slot %s', slot_id)
        raise PersistenceFailure('Error deleting slot.') from exc

    db.expunge(slot)
    logger.info('Slot %s deleted by seller %s', slot_id, seller_id)


def _meeting_bounds(booking: ConsultationBooking) -> tuple[datetime, datetime]:
    return (
        datetime.combine(booking.booking_date, booking.start_time),
        datetime.combine(booking.booking_date, booking.end_time),
    )


def _save_status(db: Session, booking: ConsultationBooking, status: str) -> ConsultationBooking:
    try:
        booking.status = status
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update booking %s', booking.id)
        raise PersistenceFailure('Failed to update booking status.') from exc

    logger.info('Booking %s moved to %s', booking.id, status)
    return booking


def update_booking_status(
    db: Session,
    booking_id: int,
    status: str,
    actor_id: str,
    now: datetime | None = None,
) -> ConsultationBooking:
    """
    Apply a seller-driven status change.

    A meeting can only be put in progress once it has started, and only
    marked missed once its grace period has run out, so a booking that is
    still ahead stays cancellable by the buyer. Completion goes through
    ``mark_booking_completed``.
    """
    booking = _load_booking(db, booking_id)

    if booking.seller_id != actor_id:
        raise NotPermitted('Only the seller can update this booking.')

    if status == 'cancelled':
        raise InvalidStatusTransition('Cancel the booking through its slot so the buyer is refunded.')

    if status not in STATUS_TRANSITIONS.get(booking.status, set()):
        raise InvalidStatusTransition(f'Cannot change a {booking.status} booking to {status}.')

    now = now or datetime.now()
    start, end = _meeting_bounds(booking)

    if status == 'in_progress' and now < start:
        raise InvalidStatusTransition('A meeting cannot be in progress before it starts.')

    if status == 'missed' and now <= end + timedelta(minutes=config.MEETING_GRACE_PERIOD_MINUTES):
        raise InvalidStatusTransition('A meeting cannot be marked missed until its grace period has passed.')

    return _save_status(db, booking, status)


def mark_booking_completed(
    db: Session,
    booking_id: int,
    actor_id: str,
    now: datetime | None = None,
) -> ConsultationBooking:
    booking = _load_booking(db, booking_id)

    if booking.seller_id != actor_id:
        raise NotPermitted('Only the seller can update this booking.')

    if booking.status not in COMPLETABLE_STATUSES:
        raise InvalidStatusTransition(f'Cannot change a {booking.status} booking to completed.')

    start, _ = _meeting_bounds(booking)
    if start > (now or datetime.now()):
        raise InvalidStatusTransition('A meeting cannot be completed before it starts.')

    return _save_status(db, booking, 'completed')


def add_meeting_link(db: Session, booking_id: int, meeting_link: str, actor_id: str) -> ConsultationBooking:
    booking = _load_booking(db, booking_id)

    if booking.seller_id != actor_id:
        raise NotPermitted('Only the seller can add a meeting link.')

    if booking.status not in ACTIVE_BOOKING_STATUSES + ('in_progress',):
        raise InvalidStatusTransition(f'Cannot add a meeting link to a {booking.status} booking.')

    try:
        booking.meeting_link = meeting_link
        db.commit()
        db.refresh(booking)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to add meeting link to booking %s', booking_id)
        raise PersistenceFailure('Failed to add meeting link.') from exc

    return booking
