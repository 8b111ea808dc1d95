from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SlugSettings(BaseSettings):
    """Process-wide defaults for new slug configurations.

    Read from ``SLUGDANTIC_*`` environment variables.
    Explicit :class:`~slugdantic.config.SlugConfig` arguments always win.
    """

    max_iterations: int = Field(default=100, ge=1)
    separator: str = Field(default="-", min_length=1)

    model_config = SettingsConfigDict(
        env_prefix="SLUGDANTIC_",
        extra="ignore",
    )


@lru_cache
def get_settings() -> SlugSettings:
    return SlugSettings()
