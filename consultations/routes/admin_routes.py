from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from consultations.auth.dependencies import get_current_profile, require_role
from consultations.core.exceptions import ConsultationError
from consultations.database import get_db
from consultations.models.profile import Profile
from consultations.routes.common import ensure_database_ready, to_http_exception
from consultations.services.cleanup import run_consultation_cleanup
from consultations.services.meeting_status import update_meeting_statuses

router = APIRouter(tags=['admin'])


class CleanupResponse(BaseModel):
    past_slots_cleaned: int
    old_booked_slots_deleted: int
    old_bookings_deleted: int
    timestamp: str


class MeetingStatusSweepResponse(BaseModel):
    missed: int


@router.post('/cleanup', response_model=CleanupResponse)
def run_cleanup(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    require_role(current_profile, 'admin', 'Only admins can run consultation cleanup.')
    ensure_database_ready()

    try:
        return run_consultation_cleanup(db)
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc


@router.post('/meeting-statuses', response_model=MeetingStatusSweepResponse)
def sweep_meeting_statuses(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    require_role(current_profile, 'admin', 'Only admins can update meeting statuses.')
    ensure_database_ready()

    try:
        return MeetingStatusSweepResponse(missed=update_meeting_statuses(db))
    except ConsultationError as exc:
        raise to_http_exception(exc) from exc
