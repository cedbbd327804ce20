"""
core/config.py -- FileVault settings, read from the environment and .env.

Field names map to env vars (secret_key -> SECRET_KEY). Every other module
goes through get_settings(); nothing else reads os.environ.

Production is DEBUG unset or false. In production a missing SECRET_KEY stops
startup and the session cookie is marked Secure unless SECURE_COOKIES says
otherwise.

Layer rule: no imports from api/, auth/ or storage/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("filevault.config")

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" means unset; resolved by apply_mode_defaults().
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # None means "follow DEBUG": Secure in production, plain in dev.
    secure_cookies: Optional[bool] = None
    token_expire_seconds: int = Field(default=24 * 60 * 60, gt=0)
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = f"sqlite:///{_PROJECT_ROOT / 'filevault.db'}"
    storage_dir: Path = _PROJECT_ROOT / "files"
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:3000"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def apply_mode_defaults(self) -> "Settings":
        """Resolve SECRET_KEY and SECURE_COOKIES against DEBUG.

        A missing key is generated in debug mode and fatal otherwise. Keys
        shorter than 32 characters are always rejected.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.secure_cookies is None:
            self.secure_cookies = not self.debug
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings instance."""
    return Settings()
