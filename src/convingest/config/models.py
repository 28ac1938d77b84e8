"""
pydantic-validated settings for the ingest pipeline.

Loaded from YAML (unknown keys ignored), then overridden by environment
variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from convingest.core.errors import ConfigError

CONFIG_ENV = "CONVINGEST_CONFIG"
OUTPUT_DIR_ENV = "CONVINGEST_OUTPUT_DIR"
LOG_LEVEL_ENV = "CONVINGEST_LOG_LEVEL"


class OutputSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    output_dir: str = "conv_out"
    emit_markdown: bool = True
    emit_json: bool = True
    emit_ndjson: bool = True
    dry_run: bool = False
    show_progress: bool = True


class StreamSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    chunk_size: int = Field(default=64 * 1024, gt=0)
    error_policy: Literal["abort", "skip"] = "abort"


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class IngestSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    output: OutputSettings = Field(default_factory=OutputSettings)
    stream: StreamSettings = Field(default_factory=StreamSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "IngestSettings":
        path = Path(path)
        if not path.exists():
            raise ConfigError(reason=f"config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(reason=f"invalid YAML in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(reason=f"{path} must contain a mapping at top level")
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(reason=f"invalid settings in {path}: {exc}") from exc

    def apply_environment(self) -> "IngestSettings":
        """Return a copy with ``CONVINGEST_*`` overrides applied."""
        settings = self.model_copy(deep=True)
        env_output = os.getenv(OUTPUT_DIR_ENV)
        if env_output:
            settings.output.output_dir = env_output
        env_level = os.getenv(LOG_LEVEL_ENV)
        if env_level:
            settings.logging.level = env_level.upper()
        return settings


def load_settings(config_path: Optional[Union[str, Path]] = None) -> IngestSettings:
    """
    Load settings from ``config_path`` (or ``$CONVINGEST_CONFIG``), defaults when neither is set.
    """
    path = config_path or os.getenv(CONFIG_ENV)
    settings = IngestSettings.from_yaml(path) if path else IngestSettings()
    return settings.apply_environment()
