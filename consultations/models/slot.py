"""Consultation slot model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship

from consultations.database import Base

ACTIVE_BOOKING_STATUSES = ('pending', 'confirmed')


class ConsultationSlot(Base):
    """Represents one fixed-duration bookable interval owned by a seller."""
    __tablename__ = "consultation_slots"

    id = Column(Integer, primary_key=True)
    seller_id = Column(String, ForeignKey("profiles.id"), index=True, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    is_booked = Column(Boolean, default=False, nullable=False)
    booked_by = Column(String, ForeignKey("profiles.id"))
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    bookings = relationship(
        "ConsultationBooking",
        back_populates="slot",
        passive_deletes=True,
    )

    @property
    def active_booking(self):
        for booking in self.bookings:
            if booking.status in ACTIVE_BOOKING_STATUSES:
                return booking
        return None
