from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # HubSpot private app settings
    HUBSPOT_ACCESS_TOKEN: str | None = None
    HUBSPOT_API_BASE_URL: str = "https://api.hubapi.com"

    # Google settings (token issued by the OAuth flow, stored outside this service)
    GOOGLE_ACCESS_TOKEN: str | None = None

    # =================================================================
    # SYNC SETTINGS
    # =================================================================
    SYNC_EMAIL_LIMIT: int = 50
    SYNC_CALENDAR_LOOKBACK_DAYS: int = 90
    SYNC_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Renewals CSV export used to enrich deals (optional)
    PLACEMENTS_CSV_PATH: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def hubspot_connected(self) -> bool:
        return bool(self.HUBSPOT_ACCESS_TOKEN)

    def google_connected(self) -> bool:
        return bool(self.GOOGLE_ACCESS_TOKEN)

    def get_sync_config(self) -> dict:
        """
        Get sync configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "email_limit": self.SYNC_EMAIL_LIMIT,
            "calendar_lookback_days": self.SYNC_CALENDAR_LOOKBACK_DAYS,
            "fetch_timeout": self.SYNC_FETCH_TIMEOUT_SECONDS,
        }

        if self.environment == "development":
            # Shorter fetch timeout locally
            config["fetch_timeout"] = min(self.SYNC_FETCH_TIMEOUT_SECONDS, 15.0)

        return config


settings = Settings()
