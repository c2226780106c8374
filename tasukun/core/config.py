"""Configuration management for tasukun."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Store Configuration
    sqlite_db_path: str = Field(default="data/tasukun.db", description="SQLite database file used by the store adapter")

    # Session Configuration
    secret_key: str = Field(default="change-me", description="Secret shared with the identity service to sign sessions")
    session_max_age_seconds: int = Field(default=86400, description="Maximum accepted session token age")
    is_production: bool = Field(default=False, description="Report the production environment to Logfire")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Google OAuth Configuration
    google_client_id: str | None = Field(default=None, description="Google OAuth client ID")
    google_client_secret: str | None = Field(default=None, description="Google OAuth client secret")
    google_redirect_uri: str = Field(
        default="http://localhost:8000/google/callback",
        description="Redirect URI registered for the OAuth client",
    )
    google_calendar_timezone: str = Field(default="Asia/Tokyo", description="Timezone attached to created events")
    google_token_expiry_margin_seconds: int = Field(
        default=0,
        ge=0,
        description="Treat access tokens as expired this many seconds before their expiry date",
    )
    google_task_event_duration_minutes: int = Field(
        default=60, gt=0, description="Length of calendar events created from a task due date"
    )

    # Slack Configuration (optional)
    slack_webhook_url: str | None = Field(default=None, description="Slack incoming webhook URL for task notifications")

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    GOOGLE_API_TIMEOUT_SECONDS: int = 10
    NOTIFICATION_TIMEOUT_SECONDS: int = 5

    # Google endpoints
    GOOGLE_AUTH_URL: str = "https://accounts.google.com/o/oauth2/v2/auth"
    GOOGLE_TOKEN_URL: str = "https://oauth2.googleapis.com/token"  # noqa: S105
    GOOGLE_CALENDAR_API_BASE_URL: str = "https://www.googleapis.com/calendar/v3"
    GOOGLE_OAUTH_SCOPES: tuple[str, ...] = (
        "https://www.googleapis.com/auth/calendar.events",
        "https://www.googleapis.com/auth/userinfo.email",
    )
    GOOGLE_DEFAULT_EXPIRES_IN_SECONDS: int = 3600

    # Task listing
    DUE_SOON_DAYS: int = 5
    TASK_TITLE_MAX_LENGTH: int = 200

    # Collections
    TASKS_COLLECTION: str = "tasks"
    GOOGLE_TOKENS_COLLECTION: str = "user_google_tokens"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
