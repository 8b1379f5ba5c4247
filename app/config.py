import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/legal_holds"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str | None = os.getenv("CELERY_RESULT_BACKEND") or None
    celery_task_always_eager: bool = _env_bool("CELERY_TASK_ALWAYS_EAGER", "false")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_json: bool = _env_bool("LOG_JSON", "false")

    # Legal hold policy
    cross_firm_role: str = os.getenv("LEGAL_HOLD_CROSS_FIRM_ROLE", "super_admin")
    legal_team_role: str = os.getenv("LEGAL_HOLD_LEGAL_TEAM_ROLE", "legal")
    ack_overdue_days: int = int(os.getenv("LEGAL_HOLD_ACK_OVERDUE_DAYS", "7"))
    new_document_lookback_minutes: int = int(
        os.getenv("LEGAL_HOLD_NEW_DOCUMENT_LOOKBACK_MINUTES", "60")
    )
    new_document_batch_size: int = int(
        os.getenv("LEGAL_HOLD_NEW_DOCUMENT_BATCH_SIZE", "100")
    )
    released_retention_days: int = int(
        os.getenv("LEGAL_HOLD_RELEASED_RETENTION_DAYS", "30")
    )
    violation_window_days: int = int(
        os.getenv("LEGAL_HOLD_VIOLATION_WINDOW_DAYS", "30")
    )
    expiry_unlinks_documents: bool = _env_bool(
        "LEGAL_HOLD_EXPIRY_UNLINKS_DOCUMENTS", "true"
    )

    # Branding
    brand_name: str = os.getenv("BRAND_NAME", "Legal Hold Service")


settings = Settings()
