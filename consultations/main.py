import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from consultations.core import config
from consultations.database import (
    Base,
    engine,
    ensure_booking_schema,
    ensure_profile_schema,
    ensure_slot_schema,
)
from consultations.models import booking, profile, slot  # noqa: F401
from consultations.routes import admin_routes, booking_routes, settings_routes, slot_routes

config.validate_runtime_config()

app = FastAPI(title='Consultation Booking API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_profile_schema()
        ensure_slot_schema()
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and Postgres credentials.')


@app.get('/')
def root():
    return {'status': 'Consultation Booking API Running'}


app.include_router(settings_routes.router, prefix='/settings')
app.include_router(slot_routes.router, prefix='/slots')
app.include_router(booking_routes.router, prefix='/bookings')
app.include_router(admin_routes.router, prefix='/admin')
