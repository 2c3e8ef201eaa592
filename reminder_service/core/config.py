from typing import List, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class ReminderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REMINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    APP_NAME: str = "Event Reminders"
    LOG_LEVEL: str = "INFO"
    API_KEYS: str = ""  # JSON list or comma-separated
    METRICS_ENABLED: bool = False

    # Database (shared with the host application)
    DATABASE_URL: str = "sqlite:///./reminders.db"

    # Scheduling
    SCHEDULER_ENABLED: bool = True
    LEAD_MINUTES: int = 5
    TICK_INTERVAL_SECONDS: int = 60
    DISPATCH_DELAY_MS: int = 1000
    LOOKAHEAD_MARGIN_MINUTES: int = 1

    # Timezone used to render start/end times in reminder emails
    DEFAULT_TIMEZONE: str = "UTC"

    # SMTP
    SMTP_SERVER: Optional[str] = None
    SMTP_PORT: int = 465
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    FROM_EMAIL: Optional[str] = None
    SMTP_TIMEOUT_SECONDS: float = 30.0

    @model_validator(mode="after")
    def _validate_schedule(self) -> "ReminderSettings":
        if self.LEAD_MINUTES <= 0:
            raise ValueError("LEAD_MINUTES must be positive")
        if self.TICK_INTERVAL_SECONDS <= 0:
            raise ValueError("TICK_INTERVAL_SECONDS must be positive")
        if self.DISPATCH_DELAY_MS < 0:
            raise ValueError("DISPATCH_DELAY_MS must not be negative")
        # Consecutive windows only overlap while the tick fits inside the margin
        if self.TICK_INTERVAL_SECONDS > self.LOOKAHEAD_MARGIN_MINUTES * 60:
            raise ValueError(
                f"TICK_INTERVAL_SECONDS ({self.TICK_INTERVAL_SECONDS}) must not exceed "
                f"LOOKAHEAD_MARGIN_MINUTES * 60 ({self.LOOKAHEAD_MARGIN_MINUTES * 60})"
            )
        return self

    @property
    def api_keys(self) -> List[str]:
        raw = (self.API_KEYS or "").strip()
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            # Fallback: treat as comma-separated string
            return [key.strip() for key in raw.split(",") if key.strip()]
        if isinstance(parsed, list):
            return [str(key) for key in parsed if str(key).strip()]
        return [str(parsed)]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.SMTP_SERVER and self.SMTP_USERNAME and self.SMTP_PASSWORD)


settings = ReminderSettings()


def get_settings() -> ReminderSettings:
    return settings
