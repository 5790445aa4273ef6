import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from consultations.core import config


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL")

engine = create_engine(DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_checked_tables: set[str] = set()

SLOT_MIGRATION_STEPS = [
    ('booked_by', 'ALTER TABLE consultation_slots ADD COLUMN booked_by VARCHAR'),
    ('updated_at', 'ALTER TABLE consultation_slots ADD COLUMN updated_at TIMESTAMP'),
]
SLOT_INDEXES = [
    'CREATE INDEX IF NOT EXISTS idx_consultation_slots_seller_date '
    'ON consultation_slots(seller_id, date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_consultation_slots_open '
    'ON consultation_slots(seller_id, is_available, is_booked, date)',
]

BOOKING_MIGRATION_STEPS = [
    ('meeting_link', 'ALTER TABLE consultation_bookings ADD COLUMN meeting_link VARCHAR'),
    ('notes', 'ALTER TABLE consultation_bookings ADD COLUMN notes VARCHAR'),
    ('payment_intent_id', 'ALTER TABLE consultation_bookings ADD COLUMN payment_intent_id VARCHAR'),
    ('updated_at', 'ALTER TABLE consultation_bookings ADD COLUMN updated_at TIMESTAMP'),
]
BOOKING_INDEXES = [
    'CREATE INDEX IF NOT EXISTS idx_consultation_bookings_buyer_date '
    'ON consultation_bookings(buyer_id, booking_date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_consultation_bookings_seller_date '
    'ON consultation_bookings(seller_id, booking_date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_consultation_bookings_slot_status '
    'ON consultation_bookings(slot_id, status)',
]

PROFILE_MIGRATION_STEPS = [
    ('consultation_duration', 'ALTER TABLE profiles ADD COLUMN consultation_duration INTEGER'),
    ('consultation_platform', 'ALTER TABLE profiles ADD COLUMN consultation_platform VARCHAR'),
]


def _ensure_table_schema(table_name: str, migration_steps: list[tuple[str, str]], indexes: list[str]) -> None:
    if table_name in _checked_tables:
        return

    with _schema_lock:
        if table_name in _checked_tables:
            return

        inspector = inspect(engine)

        if table_name not in inspector.get_table_names():
            _checked_tables.add(table_name)
            return

        existing_columns = {column['name'] for column in inspector.get_columns(table_name)}

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            for statement in indexes:
                connection.execute(text(statement))

        _checked_tables.add(table_name)


def ensure_profile_schema() -> None:
    _ensure_table_schema('profiles', PROFILE_MIGRATION_STEPS, [])


def ensure_slot_schema() -> None:
    _ensure_table_schema('consultation_slots', SLOT_MIGRATION_STEPS, SLOT_INDEXES)


def ensure_booking_schema() -> None:
    _ensure_table_schema('consultation_bookings', BOOKING_MIGRATION_STEPS, BOOKING_INDEXES)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
