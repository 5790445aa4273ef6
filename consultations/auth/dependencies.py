import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from consultations.auth import jwt_handler
from consultations.database import get_db
from consultations.models.profile import Profile

security = HTTPBearer()


def get_current_profile(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    profile_id = payload.get("sub")
    if not profile_id:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if profile is None:
        raise HTTPException(status_code=401, detail="Profile not found")
    return profile


def require_role(profile: Profile, role: str, detail: str) -> None:
    if profile.role != role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
