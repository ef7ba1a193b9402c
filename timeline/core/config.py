import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./timeline.db")
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "5000"))
DB_POOL_TIMEOUT_SECONDS = int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "10"))

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:4200"])

# Slot generation
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))
SLOT_HORIZON_DAYS = int(os.getenv("SLOT_HORIZON_DAYS", "14"))

# Expiry and reminders
REMINDER_WINDOW_HOURS = int(os.getenv("REMINDER_WINDOW_HOURS", "24"))
CODE_TTL_MINUTES = int(os.getenv("CODE_TTL_MINUTES", "15"))
ACCOUNT_GRACE_DAYS = int(os.getenv("ACCOUNT_GRACE_DAYS", "1"))

# Periodic triggers
JOBS_ENABLED = _get_bool(os.getenv("JOBS_ENABLED"), default=False)
GENERATION_INTERVAL_SECONDS = int(os.getenv("GENERATION_INTERVAL_SECONDS", "86400"))
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "86400"))
REMINDER_INTERVAL_SECONDS = int(os.getenv("REMINDER_INTERVAL_SECONDS", "600"))

MAIL_HOST = os.getenv("MAIL_HOST", "")
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_USER = os.getenv("MAIL_USER", "")
MAIL_PASSWD = os.getenv("MAIL_PASSWD", "")
MAIL_FROM = os.getenv("MAIL_FROM", MAIL_USER)
MAIL_USE_TLS = _get_bool(os.getenv("MAIL_USE_TLS"), default=True)

INTERNAL_API_TOKEN = os.getenv("INTERNAL_API_TOKEN", "")


def validate_runtime_config() -> None:
    if SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must be positive.")
    if SLOT_HORIZON_DAYS <= 0:
        raise RuntimeError("SLOT_HORIZON_DAYS must be positive.")

    if APP_ENV.lower() != "production":
        return
    if DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at Postgres in production.")
    if not INTERNAL_API_TOKEN:
        raise RuntimeError("INTERNAL_API_TOKEN must be set in production.")
