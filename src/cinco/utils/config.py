import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


# Local store
DB_PATH = os.getenv("CINCO_DB_PATH", "data/cinco.sqlite")

# Session policy
SESSION_TIMEOUT = timedelta(minutes=_env_int("CINCO_SESSION_TIMEOUT_MINUTES", 30))
SESSION_CHECK_INTERVAL = _env_int("CINCO_SESSION_CHECK_SECONDS", 60)
ACTIVITY_THROTTLE = timedelta(seconds=_env_int("CINCO_ACTIVITY_THROTTLE_SECONDS", 10))
EXPIRY_REDIRECT_DELAY = _env_int("CINCO_EXPIRY_REDIRECT_SECONDS", 2)

# Login throttling
MAX_LOGIN_ATTEMPTS = _env_int("CINCO_MAX_LOGIN_ATTEMPTS", 5)
LOCKOUT_DURATION = timedelta(minutes=_env_int("CINCO_LOCKOUT_MINUTES", 15))
ATTEMPT_WINDOW = timedelta(minutes=_env_int("CINCO_ATTEMPT_WINDOW_MINUTES", 15))

# Password hashing and bot detection
BCRYPT_ROUNDS = _env_int("CINCO_BCRYPT_ROUNDS", 10)
MIN_BOT_SCORE = _env_float("CINCO_MIN_BOT_SCORE", 0.5)

# Checkout
DELIVERY_FEE = 50.00
CURRENCY = "₱"
