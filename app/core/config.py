from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str

    # CORS
    cors_origins: str = "http://localhost:4321"

    # Google Calendar OAuth
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_calendar_id: str = "primary"
    google_request_timeout_seconds: float = 10.0

    # Availability rules
    operating_timezone: str = "Europe/London"
    timezone_label: str = "UK Time"
    slot_step_minutes: int = 60  # cadence of offered starts, not tied to duration
    default_duration_minutes: int = 60
    dedupe_slot_starts: bool = True

    # Env
    env: str = "development"
    # create_all on startup; local development only
    create_tables_on_startup: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def calendar_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


settings = Settings()
