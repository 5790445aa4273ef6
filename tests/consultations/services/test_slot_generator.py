from datetime import date, time

import pytest

from consultations.core.exceptions import InvalidDuration, InvalidWindow, PastDate
from consultations.services.slot_generator import AvailabilityWindow, SlotSpec, generate_slots

TODAY = date(2026, 1, 5)


def _window(start: time, end: time, window_date: date = TODAY) -> AvailabilityWindow:
    return AvailabilityWindow(seller_id='seller-1', date=window_date, start_time=start, end_time=end)


def test_generate_slots_splits_exact_multiple_without_remainder() -> None:
    slots = generate_slots(_window(time(9, 0), time(10, 30)), 30, today=TODAY)

    assert slots == [
        SlotSpec(date=TODAY, start_time=time(9, 0), end_time=time(9, 30)),
        SlotSpec(date=TODAY, start_time=time(9, 30), end_time=time(10, 0)),
        SlotSpec(date=TODAY, start_time=time(10, 0), end_time=time(10, 30)),
    ]


def test_generate_slots_drops_trailing_partial_period() -> None:
    slots = generate_slots(_window(time(9, 0), time(10, 20)), 30, today=TODAY)

    assert [(slot.start_time, slot.end_time) for slot in slots] == [
        (time(9, 0), time(9, 30)),
        (time(9, 30), time(10, 0)),
    ]


def test_generate_slots_rejects_window_shorter_than_duration() -> None:
    with pytest.raises(InvalidWindow) as exception_info:
        generate_slots(_window(time(9, 0), time(9, 15)), 30, today=TODAY)

    assert exception_info.value.message == 'Time block must be at least 30 minutes long.'


@pytest.mark.parametrize(
    ('start', 'end'),
    [
        (time(10, 0), time(10, 0)),
        (time(11, 0), time(10, 0)),
    ],
)
def test_generate_slots_rejects_empty_or_inverted_window(start: time, end: time) -> None:
    with pytest.raises(InvalidWindow) as exception_info:
        generate_slots(_window(start, end), 30, today=TODAY)

    assert exception_info.value.message == 'End time must be after start time.'


def test_generate_slots_rejects_past_date() -> None:
    with pytest.raises(PastDate):
        generate_slots(_window(time(9, 0), time(12, 0), window_date=date(2026, 1, 4)), 30, today=TODAY)


@pytest.mark.parametrize('duration', [0, -15])
def test_generate_slots_rejects_non_positive_duration(duration: int) -> None:
    with pytest.raises(InvalidDuration):
        generate_slots(_window(time(9, 0), time(12, 0)), duration, today=TODAY)


@pytest.mark.parametrize(
    ('start', 'end', 'duration', 'expected_count'),
    [
        (time(9, 0), time(17, 0), 60, 8),
        (time(9, 0), time(17, 0), 45, 10),
        (time(9, 0), time(9, 45), 45, 1),
        (time(8, 15), time(12, 0), 90, 2),
        (time(0, 0), time(23, 59), 120, 11),
    ],
)
def test_generate_slots_count_is_floor_of_window_over_duration(
    start: time,
    end: time,
    duration: int,
    expected_count: int,
) -> None:
    slots = generate_slots(_window(start, end), duration, today=TODAY)

    assert len(slots) == expected_count
    assert slots[0].start_time == start
    for previous, current in zip(slots, slots[1:]):
        assert previous.end_time == current.start_time


def test_generate_slots_is_deterministic() -> None:
    window = _window(time(13, 0), time(16, 10))

    assert generate_slots(window, 45, today=TODAY) == generate_slots(window, 45, today=TODAY)
