import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from consultations.core.exceptions import PersistenceFailure
from consultations.models.booking import ConsultationBooking  # noqa: F401
from consultations.models.slot import ConsultationSlot
from consultations.services.slot_generator import AvailabilityWindow, generate_slots

logger = logging.getLogger(__name__)


def create_slots_for_window(
    db: Session,
    window: AvailabilityWindow,
    duration_minutes: int,
    today: date | None = None,
) -> list[ConsultationSlot]:
    """Generate the window's slots and insert them in a single transaction."""
    slot_specs = generate_slots(window, duration_minutes, today)

    slots = [
        ConsultationSlot(
            seller_id=window.seller_id,
            date=slot_spec.date,
            start_time=slot_spec.start_time,
            end_time=slot_spec.end_time,
            is_available=True,
            is_booked=False,
        )
        for slot_spec in slot_specs
    ]

    try:
        db.add_all(slots)
        db.commit()
        for slot in slots:
            db.refresh(slot)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save slots for seller %s', window.seller_id)
        raise PersistenceFailure('Error saving slots.') from exc

    logger.info(
        'Created %d consultation slot(s) of %d minutes for seller %s on %s',
        len(slots),
        duration_minutes,
        window.seller_id,
        window.date,
    )
    return slots


def get_slot(db: Session, slot_id: int) -> ConsultationSlot | None:
    try:
        return db.query(ConsultationSlot).filter(ConsultationSlot.id == slot_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load slot %s', slot_id)
        raise PersistenceFailure('Error loading slot.') from exc


def list_seller_slots(db: Session, seller_id: str) -> list[ConsultationSlot]:
    try:
        return (
            db.query(ConsultationSlot)
            .options(selectinload(ConsultationSlot.bookings))
            .filter(ConsultationSlot.seller_id == seller_id)
            .order_by(ConsultationSlot.date.asc(), ConsultationSlot.start_time.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to load slots for seller %s', seller_id)
        raise PersistenceFailure('Error loading slots.') from exc


def list_bookable_slots(
    db: Session,
    seller_id: str,
    viewer_id: str | None = None,
    today: date | None = None,
) -> list[ConsultationSlot]:
    # Sellers never see their own slots as bookable.
    if viewer_id is not None and viewer_id == seller_id:
        return []

    today = today or date.today()
    try:
        return (
            db.query(ConsultationSlot)
            .filter(
                ConsultationSlot.seller_id == seller_id,
                ConsultationSlot.is_available.is_(True),
                ConsultationSlot.is_booked.is_(False),
                ConsultationSlot.date >= today,
            )
            .order_by(ConsultationSlot.date.asc(), ConsultationSlot.start_time.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to load available slots for seller %s', seller_id)
        raise PersistenceFailure('Error loading available slots.') from exc
