"""
Notifilter Configuration

Settings come from NOTIFILTER_* environment variables, optionally backed by a
.env file next to pyproject.toml, and are validated once on first access.

    NOTIFILTER_SOURCE_APP       Application whose notifications are filtered
                                (default com.tencent.mm)
    NOTIFILTER_ALLOW_LIST_PATH  Allow-list file; defaults to
                                {instance_root}/userdata/allow_list.json
    NOTIFILTER_INSTANCE_ROOT    Directory holding userdata/
    NOTIFILTER_LOG_LEVEL        DEBUG, INFO, WARNING, ERROR, CRITICAL
    NOTIFILTER_DEBUG            Shorthand for DEBUG when no level is set
    NOTIFILTER_LOG_JSON         Emit JSON log lines

Usage:
    from notifilter.core.config import get_settings

    store_path = get_settings().allow_list_file
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ALLOW_LIST_FILENAME, DEFAULT_SOURCE_APP


def _project_root() -> Path | None:
    """Nearest ancestor of this package that holds a pyproject.toml."""
    for candidate in Path(__file__).resolve().parents:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return None


def _dotenv() -> Path | None:
    root = _project_root()
    if root is not None and (root / ".env").is_file():
        return root / ".env"
    return None


def _default_instance_root() -> Path:
    return _project_root() or Path.cwd()


class FilterSettings(BaseSettings):
    """Validated notifilter settings."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFILTER_",
        env_file=_dotenv(),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    debug: bool = False
    log_json: bool = False

    # Filtering
    source_app: str = Field(
        default=DEFAULT_SOURCE_APP,
        min_length=1,
        description="Package name of the application whose notifications are filtered",
    )
    allow_list_path: Optional[Path] = Field(
        default=None,
        description="Allow-list file, overriding the userdata/ location",
    )
    instance_root: Path = Field(
        default_factory=_default_instance_root,
        description="Directory containing userdata/",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("source_app", mode="before")
    @classmethod
    def strip_source_app(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("allow_list_path", "instance_root")
    @classmethod
    def expand_home(cls, v: Optional[Path]) -> Optional[Path]:
        return v.expanduser() if v is not None else v

    @property
    def effective_log_level(self) -> str:
        """
        Level actually applied to loggers.

        NOTIFILTER_DEBUG only takes effect while the level is left at its
        WARNING default; an explicit NOTIFILTER_LOG_LEVEL always wins.
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        return getattr(logging, self.effective_log_level)

    @property
    def userdata_dir(self) -> Path:
        return self.instance_root / "userdata"

    @property
    def allow_list_file(self) -> Path:
        """Where the allow-list is read from and saved to."""
        return self.allow_list_path or self.userdata_dir / ALLOW_LIST_FILENAME


@lru_cache(maxsize=1)
def get_settings() -> FilterSettings:
    """Load and validate settings once per process."""
    return FilterSettings()


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
