from datetime import date, time
from decimal import Decimal

from consultations.models.booking import ConsultationBooking
from consultations.models.slot import ConsultationSlot
from consultations.services.booking_lifecycle import book_slot
from consultations.services.cleanup import run_consultation_cleanup

TODAY = date(2026, 3, 30)


def test_run_consultation_cleanup_removes_expired_data(consultation_db, make_slot, buyer) -> None:
    make_slot(slot_date=date(2026, 3, 29))
    future_open = make_slot(slot_date=date(2026, 4, 2))
    recent_booked = make_slot(slot_date=date(2026, 3, 25))
    old_booked = make_slot(slot_date=date(2026, 3, 1))
    recent_booking = book_slot(consultation_db, recent_booked.id, buyer.id, payment_amount=Decimal('49.00'))
    book_slot(consultation_db, old_booked.id, buyer.id, payment_amount=Decimal('49.00'))
    recent_booking_id = recent_booking.id
    future_open_id = future_open.id
    recent_booked_id = recent_booked.id

    result = run_consultation_cleanup(consultation_db, today=TODAY)

    assert result['past_slots_cleaned'] == 1
    assert result['old_booked_slots_deleted'] == 1
    assert result['old_bookings_deleted'] == 1
    assert 'timestamp' in result

    remaining_slot_ids = {slot_id for (slot_id,) in consultation_db.query(ConsultationSlot.id)}
    assert remaining_slot_ids == {future_open_id, recent_booked_id}
    remaining_booking_ids = {booking_id for (booking_id,) in consultation_db.query(ConsultationBooking.id)}
    assert remaining_booking_ids == {recent_booking_id}


def test_run_consultation_cleanup_keeps_booked_slot_on_retention_boundary(consultation_db, make_slot, buyer) -> None:
    slot = make_slot(slot_date=date(2026, 3, 9), start=time(14, 0), end=time(14, 30))
    booking = book_slot(consultation_db, slot.id, buyer.id, payment_amount=Decimal('49.00'))
    booking_id = booking.id

    result = run_consultation_cleanup(consultation_db, today=date(2026, 3, 29))

    assert result['past_slots_cleaned'] == 0
    assert result['old_booked_slots_deleted'] == 0
    assert result['old_bookings_deleted'] == 0
    kept = consultation_db.query(ConsultationBooking).filter(ConsultationBooking.id == booking_id).one()
    assert kept.slot_id == slot.id
