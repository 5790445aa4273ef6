import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultations.core import config
from consultations.core.exceptions import PersistenceFailure
from consultations.models.booking import ConsultationBooking
from consultations.models.slot import ConsultationSlot  # noqa: F401

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeetingTimeInfo:
    is_upcoming: bool
    is_in_progress: bool
    is_completed: bool
    is_missed: bool
    is_cancelled: bool
    minutes_until_start: int
    minutes_until_end: int
    is_overdue: bool


def _meeting_bounds(booking: ConsultationBooking) -> tuple[datetime, datetime]:
    start = datetime.combine(booking.booking_date, booking.start_time)
    end = datetime.combine(booking.booking_date, booking.end_time)
    return start, end


def _whole_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def get_meeting_time_info(booking: ConsultationBooking, now: datetime | None = None) -> MeetingTimeInfo:
    now = now or datetime.now()
    start, end = _meeting_bounds(booking)
    is_overdue = now > end + timedelta(minutes=config.MEETING_GRACE_PERIOD_MINUTES)

    return MeetingTimeInfo(
        is_upcoming=now < start,
        is_in_progress=start <= now <= end,
        is_completed=booking.status == 'completed',
        is_missed=booking.status == 'missed' or (is_overdue and booking.status == 'confirmed'),
        is_cancelled=booking.status == 'cancelled',
        minutes_until_start=_whole_minutes(start - now),
        minutes_until_end=_whole_minutes(end - now),
        is_overdue=is_overdue,
    )


def meeting_status_label(booking: ConsultationBooking, now: datetime | None = None) -> str:
    if booking.status == 'cancelled':
        return 'Cancelled'
    if booking.status == 'completed':
        return 'Completed'

    info = get_meeting_time_info(booking, now)
    if info.is_missed:
        return 'Missed'
    if info.is_in_progress:
        return 'In Progress'
    if info.is_upcoming:
        return 'Starting Soon' if info.minutes_until_start < 60 else 'Upcoming'
    return 'Confirmed'


def format_time_until_meeting(info: MeetingTimeInfo) -> str:
    if info.is_in_progress:
        return 'Happening now'
    if info.is_overdue:
        return 'Overdue'
    if info.minutes_until_start < 0:
        return 'Started'
    if info.minutes_until_start < 60:
        return f'{info.minutes_until_start} minutes'

    hours, minutes = divmod(info.minutes_until_start, 60)
    if hours < 24:
        return f'{hours}h {minutes}m'

    days, remaining_hours = divmod(hours, 24)
    return f'{days}d {remaining_hours}h'


def update_meeting_statuses(db: Session, now: datetime | None = None) -> int:
    """Mark confirmed bookings whose grace period has ended as missed."""
    now = now or datetime.now()

    try:
        candidates = db.query(ConsultationBooking).filter(
            ConsultationBooking.status == 'confirmed',
            ConsultationBooking.booking_date <= now.date(),
        ).all()

        missed = 0
        for booking in candidates:
            if get_meeting_time_info(booking, now).is_overdue:
                booking.status = 'missed'
                missed += 1

        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating meeting statuses')
        raise PersistenceFailure('Failed to update meeting statuses.') from exc

    if missed:
        logger.info('Marked %d overdue consultation(s) as missed', missed)
    return missed
