"""
Application Configuration.

Pydantic Settings model for the InternHub session core.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")

    # --- Session bootstrap ---
    SESSION_BOOTSTRAP_TIMEOUT_S: float = Field(default=5.0, gt=0)

    # --- Demo accounts (store-independent identities) ---
    DEMO_ACCOUNTS_ENABLED: bool = True
    DEMO_PASSWORD: SecretStr = SecretStr("password")

    # --- Store tables ---
    USER_TABLE: str = "utilisateur"
    STUDENT_TABLE: str = "etudiant"
    COMPANY_TABLE: str = "entreprise"
    ADMIN_TABLE: str = "administration"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # empty = console only
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when the identity backend is not configured.

        Without Supabase credentials only the demo accounts can sign in;
        every real-store call reports the backend as unavailable.
        """
        _log = logging.getLogger("internhub.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL or not self.SUPABASE_ANON_KEY.get_secret_value():
            _log.warning(
                "SUPABASE_URL / SUPABASE_ANON_KEY not set; running with "
                "demo accounts only."
            )

        return self

    @property
    def supabase_configured(self) -> bool:
        """``True`` when both Supabase URL and anon key are present."""
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY.get_secret_value())


# ---------------------------------------------------------------------------
# Module-level cached factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` instance.

    On first call, creates an ``AppConfig`` (reading from ``.env``).
    Subsequent calls return the same instance.  The session core runs on a
    single event loop, so no locking is needed around first creation.

    Prefer direct constructor injection of ``AppConfig`` in new code.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = AppConfig()
    return _config_instance
