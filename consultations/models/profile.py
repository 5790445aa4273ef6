"""Profile model definitions."""

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text
from consultations.database import Base


class Profile(Base):
    """Represents a marketplace user and their consultation settings."""
    __tablename__ = "profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    full_name = Column(String)
    display_name = Column(String)
    profile_picture_url = Column(String)
    role = Column(String, default="buyer")  # buyer/seller/admin

    consultation_enabled = Column(Boolean, default=False)
    consultation_price = Column(Numeric(10, 2), default=99)
    consultation_duration = Column(Integer)
    consultation_description = Column(Text)
    consultation_platform = Column(String, default="Google Meet")
