"""
Test environment. Must be applied before salon_booking is imported:
config values are read once at import time.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["AUTH_JWT_AUDIENCE"] = "authenticated"
os.environ["BUSINESS_TIME_ZONE"] = "Asia/Jerusalem"
os.environ["ENFORCE_SLOT_CONFLICTS"] = "true"
os.environ["RESERVATION_REJECT_PAST_DATES"] = "false"
os.environ["SCHEDULE_CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["BOOKING_RATE_LIMIT"] = "3"
