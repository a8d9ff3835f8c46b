"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
The resulting ``Settings`` object is passed explicitly to the token codec and the
database engine at startup.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="SQLAlchemy async connection string (e.g. postgresql+asyncpg://...)",
    )

    # JWT
    jwt_secret_key: str = Field(min_length=32, description="Secret key for signing JWTs (minimum 32 characters)")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        description="Access token expiration in minutes",
        gt=0,
    )

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v.upper().startswith("HS"):
            msg = "jwt_algorithm must be a symmetric HMAC algorithm (HS256, HS384, HS512)"
            raise ValueError(msg)
        return v.upper()

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for ems-api.log (enables daily-rotated file logging when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log records instead of formatted text",
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins (must be explicitly configured)",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_prefix: str = Field(
        default="/api",
        description="API route prefix",
    )

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Normalize to a leading slash and no trailing slash; ``/`` means no prefix."""
        v = "/" + v.strip().strip("/")
        return "" if v == "/" else v

    rate_limit_per_minute: int = Field(
        default=200,
        description="Maximum API requests per minute per IP address",
        gt=0,
    )
    trusted_proxy_headers: str = Field(
        default="",
        description=(
            "Comma-separated proxy headers to read the client IP from, in priority order. "
            "Set only behind a proxy that overwrites them; empty uses the peer address"
        ),
    )

    @property
    def trusted_proxy_header_list(self) -> list[str]:
        return _split_csv(self.trusted_proxy_headers)

    # Default accounts
    seed_on_startup: bool = Field(
        default=False,
        description="Create the default administrator and HR accounts at startup when missing",
    )
    seed_admin_email: str = Field(default="admin@company.com", description="Default administrator email")
    seed_admin_password: str = Field(default="admin123", description="Default administrator password")
    seed_hr_email: str = Field(default="hr@company.com", description="Default HR account email")
    seed_hr_password: str = Field(default="hr123", description="Default HR account password")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings.

    Returns:
        The Settings singleton.
    """
    return Settings()  # type: ignore[call-arg]
