from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from consultations.auth.dependencies import get_current_profile, require_role
from consultations.core import config
from consultations.core.exceptions import ConsultationError
from consultations.database import get_db
from consultations.models.profile import Profile
from consultations.routes.common import ensure_database_ready, to_http_exception
from consultations.services import settings

router = APIRouter(tags=['settings'])


class ConsultationSettingsResponse(BaseModel):
    seller_id: str
    consultation_enabled: bool
    consultation_price: Decimal
    consultation_duration: int
    consultation_description: str | None = None
    consultation_platform: str | None = None
    duration_options: list[int]


class UpdateConsultationSettingsRequest(BaseModel):
    consultation_enabled: bool | None = None
    consultation_price: Decimal | None = None
    consultation_duration: int | None = None
    consultation_description: str | None = None
    consultation_platform: str | None = None

    @field_validator('consultation_price')
    @classmethod
    def validate_price(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and value < 0:
            raise ValueError('Consultation price cannot be negative.')
        return value

    @field_validator('consultation_duration')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        if value is not None and value not in config.CONSULTATION_DURATION_OPTIONS:
            raise ValueError('Invalid consultation duration.')
        return value


def build_settings_response(profile: Profile) -> ConsultationSettingsResponse:
    return ConsultationSettingsResponse(
        seller_id=profile.id,
        consultation_enabled=bool(profile.consultation_enabled),
        consultation_price=profile.consultation_price if profile.consultation_price is not None else Decimal('0'),
        consultation_duration=profile.consultation_duration or config.DEFAULT_CONSULTATION_DURATION_MINUTES,
        consultation_description=profile.consultation_description,
        consultation_platform=profile.consultation_platform,
        duration_options=list(config.CONSULTATION_DURATION_OPTIONS),
    )


@router.get('', response_model=ConsultationSettingsResponse)
def get_my_settings(current_profile: Profile = Depends(get_current_profile)):
    require_role(current_profile, 'seller', 'Only sellers have consultation settings.')
    return build_settings_response(current_profile)


@router.put('', response_model=ConsultationSettingsResponse)
def update_my_settings(
    data: UpdateConsultationSettingsRequest,
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    require_role(current_profile, 'seller', 'Only sellers can change consultation settings.')
    ensure_database_ready()

    try:
        profile = settings.update_consultation_settings(
            db,
            current_profile.id,
            **data.model_dump(exclude_none=True),
        )
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc

    return build_settings_response(profile)


@router.get('/{seller_id}', response_model=ConsultationSettingsResponse)
def get_seller_settings(seller_id: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        profile = settings.get_seller_profile(db, seller_id)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc

    if profile is None or profile.role != 'seller':
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Seller not found.',
        )

    return build_settings_response(profile)
