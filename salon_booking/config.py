import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon_booking.db")

# Business calendar - wall-clock times sent by the booking UI are local to the salon
BUSINESS_TIME_ZONE = os.getenv("BUSINESS_TIME_ZONE", "Asia/Jerusalem")
DEFAULT_DURATION_MINUTES = int(os.getenv("DEFAULT_DURATION_MINUTES", "60"))

# Scheduling rules
# Reject reservations/moves that overlap a non-cancelled appointment on the same station
ENFORCE_SLOT_CONFLICTS = os.getenv("ENFORCE_SLOT_CONFLICTS", "true").lower() == "true"
RESERVATION_REJECT_PAST_DATES = (
    os.getenv("RESERVATION_REJECT_PAST_DATES", "false").lower() == "true"
)

# Bearer token verification (HS256 access tokens issued by the hosted auth backend)
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
if not AUTH_JWT_SECRET:
    import warnings

    warnings.warn(
        "AUTH_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    AUTH_JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
# Empty audience disables the audience check
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated") or None

# Manager schedule cache (redis)
SCHEDULE_CACHE_ENABLED = os.getenv("SCHEDULE_CACHE_ENABLED", "true").lower() == "true"
SCHEDULE_CACHE_TTL_SECONDS = int(os.getenv("SCHEDULE_CACHE_TTL_SECONDS", "60"))

# Rate limiting for proposed meeting claims (protects shareable codes from guessing)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "10"))
BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "60"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")
