from datetime import time

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ================== SETTINGS ==================
class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./bookings.db"
    TIMEZONE: str = "Europe/Tirane"

    # business hours and slot grid
    OPEN_TIME: time = time(9, 0)
    CLOSE_TIME: time = time(20, 0)
    SLOT_MINUTES: int = 25
    WINDOW_DAYS: int = 6
    CLOSED_WEEKDAY: int = 6  # Monday=0 ... Sunday=6

    CODE_LENGTH: int = 6
    CODE_ATTEMPTS: int = 10
    MIN_NAME_LENGTH: int = 2

    PURGE_INTERVAL_SECONDS: int = 60
    CLEANUP_ENABLED: bool = True

    SESSION_SECRET: str = "berberi-change-me"
    SESSION_MAX_AGE: int = 24 * 60 * 60
    ADMIN_USER: str = "admin"
    ADMIN_PASS: str = "admin123"

    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    # notifications, a channel is skipped while its credentials are empty
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_CHAT_ID: str = ""
    TWILIO_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_WHATSAPP_FROM: str = ""
    ADMIN_WHATSAPP_TO: str = ""
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = ""
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    ADMIN_EMAIL: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="allow"
    )

    @field_validator("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID", "SESSION_SECRET", mode="after")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("SLOT_MINUTES", "WINDOW_DAYS", "CODE_LENGTH", "CODE_ATTEMPTS", mode="after")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]
