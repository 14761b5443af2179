# Copyright (c) 2025, HaiyangLi <quantocean.li at gmail dot com>
#
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Any, ClassVar

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings, frozen=True):
    """Package settings with environment variable support.

    Variables are read with the ``PILEVIEW_`` prefix, e.g.
    ``PILEVIEW_LOG_LEVEL=DEBUG``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PILEVIEW_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    LOG_LEVEL: str = Field(
        default="WARNING",
        description="Level applied to the 'pileview' package logger",
    )

    VALIDATE_INDEX_MAP: bool = Field(
        default=False,
        description="Check the index map invariant after every view mutation",
    )

    # Class variable to store the singleton instance
    _instance: ClassVar[Any] = None

    @field_validator("LOG_LEVEL", mode="before")
    def _validate_log_level(cls, value: Any) -> str:
        if isinstance(value, int):
            value = logging.getLevelName(value)
        value = str(value).upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def log_level(self) -> int:
        """Numeric form of ``LOG_LEVEL``."""
        return logging.getLevelName(self.LOG_LEVEL)


# Create a singleton instance
settings = AppSettings()
# Store the instance in the class variable for singleton pattern
AppSettings._instance = settings
