import os
from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from consultations.database import Base  # noqa: E402
from consultations.models.booking import ConsultationBooking  # noqa: E402
from consultations.models.profile import Profile  # noqa: E402
from consultations.models.slot import ConsultationSlot  # noqa: E402

TABLES = [Profile.__table__, ConsultationSlot.__table__, ConsultationBooking.__table__]


@pytest.fixture
def consultation_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture
def seller(consultation_db) -> Profile:
    profile = Profile(
        id='seller-7f3a9c21',
        email='seller@example.com',
        full_name='Sam Seller',
        display_name='PromptSam',
        role='seller',
        consultation_enabled=True,
        consultation_price=Decimal('49.00'),
        consultation_duration=30,
        consultation_platform='Google Meet',
    )
    consultation_db.add(profile)
    consultation_db.commit()
    return profile


@pytest.fixture
def buyer(consultation_db) -> Profile:
    profile = Profile(
        id='buyer-1b2c3d4e',
        email='buyer@example.com',
        full_name='Bea Buyer',
        role='buyer',
    )
    consultation_db.add(profile)
    consultation_db.commit()
    return profile


@pytest.fixture
def other_buyer(consultation_db) -> Profile:
    profile = Profile(
        id='buyer-9e8d7c6b',
        email='other@example.com',
        full_name='Otto Other',
        role='buyer',
    )
    consultation_db.add(profile)
    consultation_db.commit()
    return profile


@pytest.fixture
def make_slot(consultation_db, seller):
    def _make_slot(
        slot_date: date = date(2026, 1, 5),
        start: time = time(9, 0),
        end: time = time(9, 30),
        seller_id: str | None = None,
    ) -> ConsultationSlot:
        slot = ConsultationSlot(
            seller_id=seller_id or seller.id,
            date=slot_date,
            start_time=start,
            end_time=end,
            is_available=True,
            is_booked=False,
        )
        consultation_db.add(slot)
        consultation_db.commit()
        consultation_db.refresh(slot)
        return slot

    return _make_slot
