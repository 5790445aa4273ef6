import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from consultations.core import config
from consultations.core.exceptions import InvalidDuration, NotPermitted, PersistenceFailure
from consultations.models.profile import Profile

logger = logging.getLogger(__name__)


def get_seller_profile(db: Session, seller_id: str) -> Profile | None:
    try:
        return db.query(Profile).filter(Profile.id == seller_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load profile %s', seller_id)
        raise PersistenceFailure('Could not load consultation settings.') from exc


def get_consultation_duration(db: Session, seller_id: str) -> int:
    """Return the seller's slot length in minutes, or the configured default."""
    profile = get_seller_profile(db, seller_id)
    if profile is None or not profile.consultation_duration:
        return config.DEFAULT_CONSULTATION_DURATION_MINUTES
    return profile.consultation_duration


def update_consultation_settings(
    db: Session,
    seller_id: str,
    *,
    consultation_enabled: bool | None = None,
    consultation_price: Decimal | None = None,
    consultation_duration: int | None = None,
    consultation_description: str | None = None,
    consultation_platform: str | None = None,
) -> Profile:
    if consultation_duration is not None and consultation_duration not in config.CONSULTATION_DURATION_OPTIONS:
        raise InvalidDuration(
            f'Consultation duration must be one of {", ".join(map(str, config.CONSULTATION_DURATION_OPTIONS))} minutes.'
        )

    profile = get_seller_profile(db, seller_id)
    if profile is None or profile.role != 'seller':
        raise NotPermitted('Only sellers can change consultation settings.')

    updates = {
        'consultation_enabled': consultation_enabled,
        'consultation_price': consultation_price,
        'consultation_duration': consultation_duration,
        'consultation_description': consultation_description,
        'consultation_platform': consultation_platform,
    }
    for field_name, value in updates.items():
        if value is not None:
            setattr(profile, field_name, value)

    try:
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to save consultation settings for %s', seller_id)
        raise PersistenceFailure('Could not save consultation settings.') from exc

    logger.info('Updated consultation settings for seller %s', seller_id)
    return profile
