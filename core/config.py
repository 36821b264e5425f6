"""
core/config.py -- Dashboard settings, read from the environment by pydantic-settings.

One Settings object is built per process (load_settings() in asgi.py and the
scripts, or Settings(...) directly in tests) and handed to create_app(),
TokenService and the stores. The running app keeps it on app.state.settings.
Nothing else in the project reads os.environ.

Every field maps to an upper-case environment variable of the same name
(secret_key -> SECRET_KEY, max_page_size -> MAX_PAGE_SIZE) and may also come
from a .env file in the working directory.

Startup checks (model validators):
  - SECRET_KEY: generated with a warning when DEBUG=true, mandatory
    otherwise, and never shorter than 32 characters since it signs every
    session token.
  - DEFAULT_PAGE_SIZE may not exceed MAX_PAGE_SIZE.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
resources/, or interns/.
"""

import logging
import secrets

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("dashboard.config")

MIN_SECRET_KEY_LENGTH = 32


class Settings(BaseSettings):
    """Runtime configuration for the dashboard API.

    Every field has a default, so tests can build Settings(secret_key=...)
    without any environment at all.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Process
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"
    # "" means unset; validate_secret_key() replaces or rejects it.
    secret_key: str = ""
    database_url: str = "sqlite:///dashboard.db"

    # ------------------------------------------------------------------
    # Tokens and passwords
    # ------------------------------------------------------------------

    jwt_expire_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    generated_password_length: int = Field(default=12, ge=8, le=128)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    # Comma separated, e.g. "http://localhost:3000,https://admin.example.com"
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"
    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    rate_limit_max_requests: int = Field(default=100, gt=0)

    # ------------------------------------------------------------------
    # Pagination
    # ------------------------------------------------------------------

    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1, le=1000)

    # ------------------------------------------------------------------
    # Seeding (scripts/seed_admin.py)
    # ------------------------------------------------------------------

    default_admin_username: str = "admin"
    default_admin_email: str = "admin@company.com"
    default_admin_password: str = "Admin@123"

    @property
    def origins(self) -> list[str]:
        """allowed_origins split into a clean list for CORSMiddleware."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def rate_limit(self) -> str:
        """slowapi/limits expression for the global /api/* limit."""
        return f"{self.rate_limit_max_requests}/{self.rate_limit_window_seconds} seconds"

    # ------------------------------------------------------------------
    # Startup checks
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Fill in or reject SECRET_KEY.

        With DEBUG=true a random key is generated, so tokens die with the
        process. Without DEBUG the key must be configured explicitly.
        """
        if not self.secret_key:
            if not self.debug:
                raise ValueError(
                    "SECRET_KEY is required unless DEBUG=true. "
                    "Export SECRET_KEY or add it to .env."
                )
            self.secret_key = secrets.token_hex(MIN_SECRET_KEY_LENGTH)
            logger.warning("SECRET_KEY not set; generated a throwaway key. Tokens will not survive a restart.")
        if len(self.secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters.")
        return self

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("DEFAULT_PAGE_SIZE cannot exceed MAX_PAGE_SIZE.")
        return self


def load_settings() -> Settings:
    """Build Settings from the process environment (and .env, if present)."""
    return Settings()
