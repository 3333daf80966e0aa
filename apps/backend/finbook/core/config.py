from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    APP_NAME: str = "FinBook Backend"
    ENV: str = "dev"

    # 기본 SQLite 파일 DB, apps/backend/finbook.sqlite3 절대경로 (CWD 무관)
    _default_db_path = Path(__file__).resolve().parents[2] / "finbook.sqlite3"
    DATABASE_URL: str = f"sqlite:///{_default_db_path}"

    CORS_ORIGINS: list[str] = ["*"]
    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"

    # Bearer token signing (HS256)
    SECRET_KEY: str = "dev-insecure-secret-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Shared secret for the cron-triggered job endpoints
    CRON_SECRET: str | None = None

    RESEND_API_KEY: str | None = None
    EMAIL_FROM_ADDRESS: str = "FinBook <reminder@resend.dev>"
    REPORT_FROM_ADDRESS: str = "FinBook <reports@resend.dev>"

    FREE_HISTORY_MONTHS: int = 6
    MANUAL_REMINDER_COOLDOWN_HOURS: int = 24
    AUTO_REMINDER_INTERVAL_DAYS: int = 7

    REDIS_URL: str | None = None

    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="FINBOOK_", case_sensitive=False)


settings = Settings()
