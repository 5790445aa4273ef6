"""
Splits a seller's availability window into fixed-duration consultation slots.

Pure logic: no database, no clock reads beyond the optional default for
``today``.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from consultations.core.exceptions import InvalidDuration, InvalidWindow, PastDate


@dataclass(frozen=True)
class AvailabilityWindow:
    """A same-day block of time a seller declares open for consultations."""
    seller_id: str
    date: date
    start_time: time
    end_time: time

    def duration_minutes(self) -> int:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        return int((end - start).total_seconds() // 60)


@dataclass(frozen=True)
class SlotSpec:
    date: date
    start_time: time
    end_time: time


def validate_window(window: AvailabilityWindow, duration_minutes: int, today: date | None = None) -> None:
    if duration_minutes <= 0:
        raise InvalidDuration('Consultation duration must be a positive number of minutes.')

    if window.end_time <= window.start_time:
        raise InvalidWindow('End time must be after start time.')

    today = today or date.today()
    if window.date < today:
        raise PastDate('Cannot create slots for past dates.')

    if window.duration_minutes() < duration_minutes:
        raise InvalidWindow(f'Time block must be at least {duration_minutes} minutes long.')


def generate_slots(
    window: AvailabilityWindow,
    duration_minutes: int,
    today: date | None = None,
) -> list[SlotSpec]:
    """
    Partition ``window`` into contiguous slots of exactly ``duration_minutes``.

    Slots start at the window start. A trailing period shorter than the
    duration is dropped rather than produced as a short slot.

    Raises:
        InvalidDuration: duration is not positive.
        InvalidWindow: window is empty, inverted, or shorter than one slot.
        PastDate: window date is before ``today``.
    """
    validate_window(window, duration_minutes, today)

    step = timedelta(minutes=duration_minutes)
    window_end = datetime.combine(window.date, window.end_time)
    current = datetime.combine(window.date, window.start_time)

    slots: list[SlotSpec] = []
    while current + step <= window_end:
        slot_end = current + step
        slots.append(SlotSpec(date=window.date, start_time=current.time(), end_time=slot_end.time()))
        current = slot_end

    return slots
