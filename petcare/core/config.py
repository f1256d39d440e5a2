import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./petcare.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

STATUS_SCHEDULER_ENABLED = _get_bool(os.getenv("STATUS_SCHEDULER_ENABLED"), default=True)
STATUS_SWEEP_INTERVAL_MINUTES = int(os.getenv("STATUS_SWEEP_INTERVAL_MINUTES", "5"))
# Divisors of 60 up to 10, so a minute-aligned cron fires at even gaps.
SWEEP_INTERVAL_CHOICES = frozenset({1, 2, 3, 4, 5, 6, 10})

# Bookings a patient may hold that are not completed, cancelled or declined.
MAX_ACTIVE_APPOINTMENTS = int(os.getenv("MAX_ACTIVE_APPOINTMENTS", "2"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if STATUS_SWEEP_INTERVAL_MINUTES not in SWEEP_INTERVAL_CHOICES:
        raise RuntimeError(
            f"STATUS_SWEEP_INTERVAL_MINUTES must be one of {sorted(SWEEP_INTERVAL_CHOICES)}."
        )
