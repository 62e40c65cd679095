from typing import Optional, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field
from dotenv import load_dotenv

from services.exceptions import ConfigurationError

load_dotenv()


class Settings(BaseSettings):
    # ============================================================
    # APPLICATION INFO
    # ============================================================
    PROJECT_NAME: str = "Fare Scout Bot"
    API_V1_STR: str = "/api/v1"
    VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # ============================================================
    # CREDENTIALS (REQUIRED)
    # ============================================================
    BOT_TOKEN: str = ""
    TRAVELPAYOUTS_API_TOKEN: str = Field(
        default="",
        validation_alias=AliasChoices("TRAVELPAYOUTS_API_TOKEN", "TRAVELPAYOUTS_AVIASALES"),
    )

    # ============================================================
    # OUTBOUND HTTP
    # ============================================================
    HTTP_TIMEOUT_SECONDS: float = 15.0
    HTTP_MAX_RETRIES: int = 3

    # ============================================================
    # TELEGRAM TRANSPORT
    # ============================================================
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_WEBHOOK_URL: Optional[str] = None
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = None
    POLLING_TIMEOUT_SECONDS: int = 30

    # ============================================================
    # SESSIONS
    # ============================================================
    SESSION_BACKEND: Literal["memory", "redis"] = "memory"
    SESSION_TTL_SECONDS: int = 7 * 24 * 3600
    SESSION_MAX_ENTRIES: int = 10_000
    REDIS_URL: str = "redis://localhost:6379/0"

    # ============================================================
    # LOGGING
    # ============================================================
    LOG_LEVEL: Optional[str] = None

    @property
    def log_level(self) -> str:
        if self.LOG_LEVEL:
            return self.LOG_LEVEL.upper()
        return "DEBUG" if self.ENVIRONMENT == "development" else "INFO"

    # ============================================================
    # PYDANTIC CONFIG
    # ============================================================
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


# ============================================================
# GLOBAL INSTANCE
# ============================================================
settings = Settings()


# ============================================================
# VALIDATION
# ============================================================
def validate_required_settings(current: Optional[Settings] = None) -> None:
    """Raise ConfigurationError when a required credential is missing."""
    current = current or settings
    missing = []

    if not current.BOT_TOKEN:
        missing.append("BOT_TOKEN")
    if not current.TRAVELPAYOUTS_API_TOKEN:
        missing.append("TRAVELPAYOUTS_API_TOKEN")

    if missing:
        raise ConfigurationError(f"Missing required env vars: {', '.join(missing)}")
