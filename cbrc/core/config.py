from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


@dataclass(frozen=True)
class BusinessHours:
    """Daily half-open booking window, in minutes after midnight."""

    open_minute: int
    close_minute: int
    granularity: int

    @classmethod
    def from_hours(cls, start_hour: int, end_hour: int, granularity: int) -> "BusinessHours":
        return cls(open_minute=start_hour * 60, close_minute=end_hour * 60, granularity=granularity)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./cbrc.db"
    auto_create_tables: bool = True

    # Function host the relay forwards to (this app by default)
    functions_base_url: str = "http://127.0.0.1:8000/functions/v1"
    service_role_key: str = ""
    caldav_function_url: str = ""
    relay_timeout_seconds: float = 10.0

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Slot/appointment business rules
    business_start_hour: int = 9
    business_end_hour: int = 18  # exclusive, so the last slot ends at 18:00
    slot_granularity_minutes: int = 30
    # Creation rejects dates further out than this (about six months)
    booking_horizon_days: int = 183

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def business_hours(self) -> BusinessHours:
        return BusinessHours.from_hours(
            self.business_start_hour, self.business_end_hour, self.slot_granularity_minutes
        )

    @property
    def relay_configured(self) -> bool:
        return bool(self.functions_base_url and self.service_role_key)

    @property
    def caldav_target_url(self) -> str:
        if self.caldav_function_url:
            return self.caldav_function_url.rstrip("/")
        if not self.functions_base_url:
            return ""
        return f"{self.functions_base_url.rstrip('/')}/caldav-server"


settings = Settings()
