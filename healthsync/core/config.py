"""
Application configuration using pydantic-settings.
"""
import logging
import secrets
from pathlib import Path
from typing import List, Optional

from pydantic import field_validator, model_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Insecure default that should never be used in production
_INSECURE_DEFAULT_SECRET = "your-super-secret-key-change-in-production"
DEFAULT_SQLITE_URL = "sqlite:///./healthsync.db"
DEFAULT_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# Define the project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent.resolve()


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Health Sync Service"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    public_base_url: str = "http://localhost:8000"  # Used to build OAuth redirect URIs
    frontend_url: Optional[str] = None  # Callback pages redirect here when opened outside a popup

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: Optional[List[str]] = None
    cors_allow_headers: Optional[List[str]] = None

    # Database Configuration
    database_url: str = DEFAULT_SQLITE_URL
    postgres_url: Optional[str] = None
    run_migrations_on_startup: bool = True

    # Security
    secret_key: str = ""  # Must be set via environment variable
    jwt_secret: Optional[str] = None  # Defaults to secret_key
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None
    access_token_expire_minutes: int = 60
    oauth_state_ttl_seconds: int = 600
    oauth_state_clock_skew_seconds: int = 60

    # Google Calendar
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_redirect_uri: Optional[str] = None
    google_scopes: str = "https://www.googleapis.com/auth/calendar"

    # Fitbit
    fitbit_client_id: Optional[str] = None
    fitbit_client_secret: Optional[str] = None
    fitbit_redirect_uri: Optional[str] = None
    fitbit_scopes: str = "activity heartrate nutrition profile sleep weight"

    # Alexa (Login with Amazon)
    alexa_client_id: Optional[str] = None
    alexa_client_secret: Optional[str] = None
    alexa_redirect_uri: Optional[str] = None
    alexa_scopes: str = "alexa::alerts:reminders:skill:readwrite"

    # Outbound integrations
    http_timeout_seconds: float = 10.0
    home_assistant_webhook_id: str = "lovable_alexa_announce"
    notify_me_url: str = "https://api.notifymyecho.com/v1/NotifyMe"
    webhook_source: str = "health-sync"
    connection_test_persist_refresh: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_dir: str = "./logs"
    log_to_file: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def database_type(self) -> str:
        """Detect database type from configuration."""
        if self.effective_database_url.startswith(("postgresql", "postgres")):
            return "postgresql"
        return "sqlite"

    @property
    def effective_database_url(self) -> str:
        """PostgreSQL override wins over the primary database URL."""
        if self.postgres_url:
            return self.postgres_url
        return self.database_url

    @property
    def effective_jwt_secret(self) -> str:
        return self.jwt_secret or self.secret_key

    @field_validator('secret_key')
    @classmethod
    def validate_secret_key(cls, v: str, info: ValidationInfo) -> str:
        """Validate SECRET_KEY is set and secure."""
        if not v:
            env = info.data.get('environment', 'development')
            if env == 'production':
                raise ValueError(
                    "SECRET_KEY must be set in production! "
                    "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
                )
            logger.warning(
                "SECRET_KEY not set! Using auto-generated key for development. "
                "This key will change on restart and stored credentials will become unreadable."
            )
            return secrets.token_urlsafe(32)

        if v == _INSECURE_DEFAULT_SECRET:
            logger.warning(
                "Using insecure default SECRET_KEY! "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        elif len(v) < 32:
            logger.warning(
                f"SECRET_KEY is only {len(v)} characters long. "
                "Recommend at least 32 characters for security."
            )

        return v

    @field_validator('cors_origins', 'cors_allow_headers', mode='before')
    @classmethod
    def parse_list_fields(cls, v):
        """Parse list fields from a comma-separated string or list."""
        if v is None:
            return None

        if isinstance(v, str):
            if not v.strip():
                return None
            return [item.strip() for item in v.split(',') if item.strip()]

        if isinstance(v, list):
            return v

        return None

    @field_validator('cors_origins')
    @classmethod
    def validate_cors_origins(cls, v: Optional[List[str]]) -> List[str]:
        """Browser clients call from arbitrary origins; default to wildcard."""
        return v or ["*"]

    @field_validator('cors_allow_headers')
    @classmethod
    def validate_cors_allow_headers(cls, v: Optional[List[str]]) -> List[str]:
        return v or list(DEFAULT_CORS_HEADERS)

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate primary database URL."""
        if not v or not v.strip():
            logger.info(
                "DATABASE_URL not provided; defaulting to SQLite at %s", DEFAULT_SQLITE_URL
            )
            return DEFAULT_SQLITE_URL

        url = v.strip()
        if url.startswith(("sqlite", "postgresql", "postgres")):
            return url

        logger.warning(
            "DATABASE_URL uses unsupported or untested dialect '%s'. Proceed with caution.",
            url.split("://", 1)[0]
        )
        return url

    @field_validator('postgres_url')
    @classmethod
    def validate_postgres_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate PostgreSQL override URL."""
        if not v or not v.strip():
            return None

        url = v.strip()
        if not url.startswith(("postgresql", "postgres")):
            raise ValueError(
                "POSTGRES_URL must be a PostgreSQL URL (postgresql:// or postgres://)"
            )
        return url

    @field_validator('public_base_url')
    @classmethod
    def validate_public_base_url(cls, v: str) -> str:
        """PUBLIC_BASE_URL must carry a scheme and no trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                "PUBLIC_BASE_URL must start with http:// or https://. "
                f"Got: {v}"
            )
        return v.rstrip("/")

    @field_validator('oauth_state_ttl_seconds')
    @classmethod
    def validate_state_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("OAUTH_STATE_TTL_SECONDS must be positive")
        if v > 3600:
            raise ValueError("OAUTH_STATE_TTL_SECONDS cannot exceed 3600 seconds (1 hour)")
        return v

    @field_validator('http_timeout_seconds')
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @model_validator(mode='after')
    def validate_production_settings(self) -> 'Settings':
        """Comprehensive production validation."""
        if self.environment != "production":
            return self

        errors = []
        warnings = []

        if self.debug:
            errors.append("DEBUG must be False in production.")

        if self.secret_key == _INSECURE_DEFAULT_SECRET:
            errors.append("SECRET_KEY must be changed from the default value in production.")

        if self.public_base_url.startswith("http://"):
            warnings.append(
                "PUBLIC_BASE_URL uses plain HTTP. OAuth providers usually require HTTPS redirect URIs."
            )

        if self.effective_database_url.startswith("sqlite"):
            warnings.append(
                "Using SQLite in production. Ensure you understand the durability "
                "limitations and configure regular backups."
            )

        for warning in warnings:
            logger.warning(f"Production configuration warning: {warning}")

        if errors:
            error_message = "Production configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_message)

        return self


# Create settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get settings instance."""
    return settings
