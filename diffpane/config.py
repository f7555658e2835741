"""Application configuration via pydantic-settings.

Loads all settings from environment variables (or .env file).  Only the
service and API layers read settings; ``diffpane.core`` functions take
plain keyword arguments so they stay pure.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration for the diffpane service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Content providers ---
    github_token: str = ""
    github_api_base: str = "https://api.github.com"
    azure_devops_pat: str = ""
    content_fetch_timeout_seconds: float = 10.0

    # --- Diff view cache ---
    diff_cache_ttl_seconds: float = 900.0
    diff_cache_max_entries: int = 256

    # --- Alignment ---
    max_full_content_lines: int = 200_000
    lcs_max_window_lines: int = 4000
    context_lines: int = 3
    function_scan_max_lines: int = 50

    # --- Application ---
    log_level: str = "INFO"

    @property
    def enabled_providers(self) -> list[str]:
        """Providers with credentials configured.

        GitHub works unauthenticated for public repositories, so it is
        always enabled; Azure DevOps needs a personal access token.
        """
        providers = ["github"]
        if self.azure_devops_pat:
            providers.append("azure_devops")
        else:
            logger.debug("AZURE_DEVOPS_PAT not set, Azure DevOps fetching disabled")
        return providers


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()
