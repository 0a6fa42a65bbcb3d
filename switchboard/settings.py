"""
Centralized configuration for Switchboard.
All env-based constants live here.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# --- Twilio ---
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER", "")

# Base URL customers use to reach this server (video room links)
PUBLIC_URL = os.getenv("PUBLIC_URL", "http://localhost:8080").rstrip("/")

# --- Cache / dedup timing (seconds) ---
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "60"))
DEDUP_WINDOW_SECONDS = float(os.getenv("DEDUP_WINDOW_SECONDS", "60"))

# --- Server ---
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def is_testing() -> bool:
    """True under pytest or when SWITCHBOARD_TESTING is set."""
    flag = os.getenv("SWITCHBOARD_TESTING", "").lower()
    return flag in ("1", "true", "yes") or "PYTEST_CURRENT_TEST" in os.environ
