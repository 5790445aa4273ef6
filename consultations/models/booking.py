"""Consultation booking model definitions."""

from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import relationship

from consultations.database import Base


class ConsultationBooking(Base):
    """Represents a buyer's claim on a slot, with payment metadata.

    Date and times are copied from the slot so the booking history survives
    slot cleanup.
    """
    __tablename__ = "consultation_bookings"

    id = Column(Integer, primary_key=True)
    slot_id = Column(Integer, ForeignKey("consultation_slots.id", ondelete="SET NULL"), index=True)
    buyer_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    seller_id = Column(String, ForeignKey("profiles.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, default="pending", nullable=False)
    payment_status = Column(String, default="pending", nullable=False)
    payment_amount = Column(Numeric(10, 2), default=0)
    payment_intent_id = Column(String)
    notes = Column(String)
    meeting_link = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    slot = relationship("ConsultationSlot", back_populates="bookings")
