import logging
from datetime import date, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultations.core import config
from consultations.core.exceptions import PersistenceFailure
from consultations.models.booking import ConsultationBooking
from consultations.models.slot import ConsultationSlot

logger = logging.getLogger(__name__)


def run_consultation_cleanup(db: Session, today: date | None = None) -> dict:
    """
    Remove expired consultation data in one transaction.

    - unbooked slots dated before today
    - booked slots older than the retention period (bookings keep their own
      date and time, so history survives)
    - bookings older than the retention period
    """
    today = today or date.today()
    retention_cutoff = today - timedelta(days=config.CONSULTATION_RETENTION_DAYS)

    try:
        past_slots_cleaned = db.query(ConsultationSlot).filter(
            ConsultationSlot.date < today,
            ConsultationSlot.is_booked.is_(False),
        ).delete(synchronize_session=False)

        old_booked_slot_ids = [
            slot_id
            for (slot_id,) in db.query(ConsultationSlot.id).filter(
                ConsultationSlot.date < retention_cutoff,
                ConsultationSlot.is_booked.is_(True),
            )
        ]
        if old_booked_slot_ids:
            db.query(ConsultationBooking).filter(
                ConsultationBooking.slot_id.in_(old_booked_slot_ids),
            ).update({ConsultationBooking.slot_id: None}, synchronize_session=False)
            db.query(ConsultationSlot).filter(
                ConsultationSlot.id.in_(old_booked_slot_ids),
            ).delete(synchronize_session=False)

        old_bookings_deleted = db.query(ConsultationBooking).filter(
            ConsultationBooking.booking_date < retention_cutoff,
        ).delete(synchronize_session=False)

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error running consultation cleanup')
        raise PersistenceFailure('Consultation cleanup failed.') from exc

    result = {
        'past_slots_cleaned': past_slots_cleaned,
        'old_booked_slots_deleted': len(old_booked_slot_ids),
        'old_bookings_deleted': old_bookings_deleted,
        'timestamp': datetime.now().isoformat(),
    }
    logger.info('Consultation cleanup completed: %s', result)
    return result
