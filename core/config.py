"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for StudyHub happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, upload_dir -> UPLOAD_DIR).

  @model_validator(mode="after"): dev mode (DEBUG=true) generates a signing
      key with a warning; production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key weakens every issued session token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or materials/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("studyhub.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults except the signing key, which the validator
    either generates (dev mode) or demands (production mode).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = Field(default=5000, ge=1, le=65535)
    cors_origins: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=3600, gt=0)
    # bcrypt accepts 4..31; 10 matches the cost the service has always used.
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    # Plain "sqlite://" is a private in-memory database: identities live
    # exactly as long as the process.
    database_url: str = "sqlite://"

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    upload_dir: Path = Path("uploads")

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Settle the token signing key before any TokenService is built.

        With DEBUG on and no key configured, a throwaway key is generated, so
        every session token issued before a restart stops verifying after it.
        Without DEBUG, a missing key is a startup error. A configured key
        must be 32 characters or longer in either case.
        """
        if self.secret_key:
            if len(self.secret_key) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters; session tokens are signed with it.")
            return self
        if not self.debug:
            raise ValueError(
                "SECRET_KEY is required to sign session tokens. "
                "Export SECRET_KEY (32+ characters) or put it in .env; "
                "DEBUG=true generates a temporary one for local runs."
            )
        self.secret_key = secrets.token_hex(32)
        logger.warning("DEBUG is on and SECRET_KEY is unset: signing tokens with a temporary key.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
