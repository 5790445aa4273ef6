from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from consultations.models.slot import ConsultationSlot
from consultations.routes.slot_routes import (
    BookSlotRequest,
    CreateTimeBlockRequest,
    book_slot,
    cancel_slot_booking,
    create_time_block,
    delete_slot,
    list_my_slots,
    list_seller_available_slots,
)

NEXT_WEEK = date.today() + timedelta(days=7)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('consultations.routes.slot_routes.ensure_database_ready', lambda: None)


def _create_block(db, profile, start: time, end: time, block_date: date = NEXT_WEEK):
    return create_time_block(
        data=CreateTimeBlockRequest(date=block_date, start_time=start, end_time=end),
        current_profile=profile,
        db=db,
    )


def test_create_time_block_request_truncates_seconds() -> None:
    request = CreateTimeBlockRequest(date=NEXT_WEEK, start_time=time(9, 0, 42), end_time=time(10, 0, 5))

    assert request.start_time == time(9, 0)
    assert request.end_time == time(10, 0)


def test_book_slot_request_normalizes_notes() -> None:
    assert BookSlotRequest(notes='   ').notes is None
    assert BookSlotRequest(notes='  help with prompts ').notes == 'help with prompts'


def test_book_slot_request_rejects_long_notes_and_failed_payment() -> None:
    with pytest.raises(ValidationError):
        BookSlotRequest(notes='x' * 601)
    with pytest.raises(ValidationError):
        BookSlotRequest(payment_status='failed')


def test_create_time_block_splits_window_using_seller_duration(consultation_db, seller) -> None:
    response = _create_block(consultation_db, seller, time(9, 0), time(10, 30))

    assert response.duration_minutes == 30
    assert [(slot.start_time, slot.end_time) for slot in response.slots] == [
        (time(9, 0), time(9, 30)),
        (time(9, 30), time(10, 0)),
        (time(10, 0), time(10, 30)),
    ]
    assert consultation_db.query(ConsultationSlot).count() == 3


def test_create_time_block_rejects_short_window(consultation_db, seller) -> None:
    with pytest.raises(HTTPException) as exception_info:
        _create_block(consultation_db, seller, time(9, 0), time(9, 15))

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Time block must be at least 30 minutes long.'
    assert consultation_db.query(ConsultationSlot).count() == 0


def test_create_time_block_rejects_past_date(consultation_db, seller) -> None:
    with pytest.raises(HTTPException) as exception_info:
        _create_block(consultation_db, seller, time(9, 0), time(12, 0), block_date=date.today() - timedelta(days=1))

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Cannot create slots for past dates.'


def test_create_time_block_requires_seller(consultation_db, buyer) -> None:
    with pytest.raises(HTTPException) as exception_info:
        _create_block(consultation_db, buyer, time(9, 0), time(10, 0))

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Only sellers can create consultation slots.'


def test_book_slot_charges_seller_price_and_blocks_second_booking(consultation_db, seller, buyer, other_buyer) -> None:
    slot_id = _create_block(consultation_db, seller, time(9, 0), time(9, 30)).slots[0].id

    booking = book_slot(
        slot_id=slot_id,
        data=BookSlotRequest(notes='Prompt audit'),
        current_profile=buyer,
        db=consultation_db,
    )

    assert booking.payment_amount == Decimal('49.00')
    assert booking.status == 'confirmed'

    with pytest.raises(HTTPException) as exception_info:
        book_slot(slot_id=slot_id, data=BookSlotRequest(), current_profile=other_buyer, db=consultation_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Slot is no longer available.'


def test_book_slot_returns_not_found_for_missing_slot(consultation_db, buyer) -> None:
    with pytest.raises(HTTPException) as exception_info:
        book_slot(slot_id=12345, data=BookSlotRequest(), current_profile=buyer, db=consultation_db)

    assert exception_info.value.status_code == 404


def test_seller_cannot_book_own_slot(consultation_db, seller) -> None:
    slot_id = _create_block(consultation_db, seller, time(9, 0), time(9, 30)).slots[0].id

    with pytest.raises(HTTPException) as exception_info:
        book_slot(slot_id=slot_id, data=BookSlotRequest(), current_profile=seller, db=consultation_db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'You cannot book your own consultation slots.'


def test_list_my_slots_reports_active_booking(consultation_db, seller, buyer) -> None:
    slots = _create_block(consultation_db, seller, time(9, 0), time(10, 0)).slots
    booking = book_slot(slot_id=slots[1].id, data=BookSlotRequest(), current_profile=buyer, db=consultation_db)

    listed = list_my_slots(current_profile=seller, db=consultation_db)

    assert [slot.is_booked for slot in listed] == [False, True]
    assert listed[1].booking_id == booking.id
    assert listed[1].booked_by == buyer.id
    assert listed[0].booking_id is None


def test_list_seller_available_slots_hides_booked_and_own(consultation_db, seller, buyer) -> None:
    slots = _create_block(consultation_db, seller, time(9, 0), time(10, 0)).slots
    book_slot(slot_id=slots[0].id, data=BookSlotRequest(), current_profile=buyer, db=consultation_db)

    available = list_seller_available_slots(seller_id=seller.id, current_profile=buyer, db=consultation_db)

    assert [slot.id for slot in available] == [slots[1].id]
    assert list_seller_available_slots(seller_id=seller.id, current_profile=seller, db=consultation_db) == []


def test_cancel_then_delete_slot(consultation_db, seller, buyer) -> None:
    slot_id = _create_block(consultation_db, seller, time(9, 0), time(9, 30)).slots[0].id
    book_slot(slot_id=slot_id, data=BookSlotRequest(), current_profile=buyer, db=consultation_db)

    with pytest.raises(HTTPException) as exception_info:
        delete_slot(slot_id=slot_id, current_profile=seller, db=consultation_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Cannot delete a booked slot. Please cancel the booking first.'

    cancelled = cancel_slot_booking(slot_id=slot_id, current_profile=seller, db=consultation_db)
    assert cancelled.status == 'cancelled'
    assert cancelled.payment_status == 'refunded'

    delete_slot(slot_id=slot_id, current_profile=seller, db=consultation_db)
    assert consultation_db.query(ConsultationSlot).count() == 0


def test_cancel_without_booking_returns_conflict(consultation_db, seller) -> None:
    slot_id = _create_block(consultation_db, seller, time(9, 0), time(9, 30)).slots[0].id

    with pytest.raises(HTTPException) as exception_info:
        cancel_slot_booking(slot_id=slot_id, current_profile=seller, db=consultation_db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'This slot has no active booking to cancel.'
