"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TASKMASTER_ prefix
(a local .env file is read too). Loaded once at import time.

Learn: database_url and jwt_secret have no defaults. If either
is missing, Settings() raises at import and the process never starts
serving requests.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All app configuration. Set via TASKMASTER_* env vars."""

    # Database (required)
    database_url: str

    # Auth (jwt_secret required)
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = 24

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Mail (notifications are skipped when smtp_host is empty)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = False  # implicit TLS, usually port 465
    smtp_start_tls: bool = True
    email_from: str = '"Task Master App" <no-reply@example.com>'

    # Team policy: any authenticated account may add team members.
    # Set to false to require role == "admin".
    allow_any_user_to_manage_team: bool = True

    model_config = SettingsConfigDict(
        env_prefix="TASKMASTER_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @model_validator(mode="after")
    def validate_required_secrets(self):
        """Empty strings count as missing for the mandatory settings."""
        if not self.database_url.strip():
            raise ValueError("TASKMASTER_DATABASE_URL must be set.")
        if not self.jwt_secret.strip():
            raise ValueError(
                "TASKMASTER_JWT_SECRET must be set. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton, import this everywhere
settings = Settings()
