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
    database_ssl: bool = True  # only applied to postgresql URLs

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 60
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Calendar rules
    slot_duration_minutes: int = 30
    business_start_hour: int = 9
    business_end_hour: int = 17  # exclusive, so last slot starts at 16:30
    booking_window_days: int = 5
    default_timezone: str = "UTC"

    # Pagination for the upcoming appointments listing
    default_page: int = 1
    default_per_page: int = 10

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def last_slot_start_minute(self) -> int:
        """Minute of the day at which the last bookable slot starts."""
        return self.business_end_hour * 60 - self.slot_duration_minutes


settings = Settings()
