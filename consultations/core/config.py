import os



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

DEFAULT_CONSULTATION_DURATION_MINUTES = int(os.getenv("DEFAULT_CONSULTATION_DURATION_MINUTES", "60"))
CONSULTATION_DURATION_OPTIONS = (15, 30, 45, 60, 90, 120)
CONSULTATION_RETENTION_DAYS = int(os.getenv("CONSULTATION_RETENTION_DAYS", "20"))
MEETING_GRACE_PERIOD_MINUTES = int(os.getenv("MEETING_GRACE_PERIOD_MINUTES", "15"))
MAX_BOOKING_NOTES_LENGTH = 600

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if DEFAULT_CONSULTATION_DURATION_MINUTES not in CONSULTATION_DURATION_OPTIONS:
        raise RuntimeError(
            f"DEFAULT_CONSULTATION_DURATION_MINUTES must be one of {CONSULTATION_DURATION_OPTIONS}."
        )
