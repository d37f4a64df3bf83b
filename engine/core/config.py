"""
Engine configuration.

Usage:
    config = DataConfig(unknown_keys="drop", migration_window=3)
    config = DataConfig.from_file("config/data.json")
    configure_logging(config)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class DataConfig(BaseModel):
    """
    Configuration for construction, migration and shimming.

    Attributes:
        unknown_keys: What to do with keys no schema or migration rule
            recognizes: "error" reports them, "drop" discards them
        migration_window: If set, only the last N schema generations are
            migrated; older explicitly-versioned data is rejected
        shim_warnings: Emit DeprecationWarning when a legacy name is used
        log_level: Level for the engine's loggers
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    unknown_keys: Literal["error", "drop"] = "error"
    migration_window: int | None = Field(default=None, ge=1)
    shim_warnings: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @classmethod
    def from_file(cls, path: Path | str) -> DataConfig:
        """Load configuration from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))


DEFAULT_CONFIG = DataConfig()


def configure_logging(config: DataConfig = DEFAULT_CONFIG) -> logging.Logger:
    """Apply the configured level to the engine's logger hierarchy."""
    logger = logging.getLogger("engine")
    logger.setLevel(config.log_level)
    return logger
