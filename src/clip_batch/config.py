"""Configuration loading and management for clip-batch.

Parser keywords and script output settings live in a single JSON file.
Every field has a default, so an empty ``{}`` file is a valid config.
"""

from __future__ import annotations

import json
import os
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from clip_batch.errors import ConfigurationError

CONFIG_ENV_VAR = "CLIP_BATCH_CONFIG"
DEFAULT_CONFIG_NAME = "clip-batch.json"


class ScriptDialect(str, Enum):
    """Shell the generated script is written for."""

    BATCH = "batch"  # Windows cmd.exe .bat file
    SHELL = "shell"  # POSIX sh


class HeaderKeywords(BaseModel):
    """Substrings that identify each column in the header row.

    Matching is case-insensitive and by substring, so "Source File Name"
    matches both "source" and "file".
    """

    file: list[str] = Field(
        default_factory=lambda: ["filename", "file", "name", "source", "视频", "文件"]
    )
    time: list[str] = Field(
        default_factory=lambda: ["time", "duration", "range", "start", "end", "时间", "截取", "轴"]
    )
    description: list[str] = Field(
        default_factory=lambda: ["description", "desc", "content", "note", "描述", "内容"]
    )

    @field_validator("file", "time")
    @classmethod
    def _require_keywords(cls, value: list[str]) -> list[str]:
        cleaned = [k.strip().lower() for k in value if k.strip()]
        if not cleaned:
            raise ValueError("at least one keyword is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def _normalize_keywords(cls, value: list[str]) -> list[str]:
        return [k.strip().lower() for k in value if k.strip()]

    def matches(self, category: str, cell: str) -> bool:
        """Check whether a cell contains any keyword of a category.

        Args:
            category: One of "file", "time", "description"
            cell: Header cell text

        Returns:
            True if any keyword is a substring of the lowercased cell
        """
        lowered = cell.lower()
        return any(keyword in lowered for keyword in getattr(self, category))


class ParserSettings(BaseModel):
    """Settings for table structure detection."""

    keywords: HeaderKeywords = Field(default_factory=HeaderKeywords)
    # Time-cell markers meaning "the whole source file"
    full_markers: list[str] = Field(default_factory=lambda: ["全片段", "full"])
    # Number of leading lines sampled for delimiter detection
    sample_size: int = Field(default=5, ge=1)
    # Which header cell wins when several match a category. "last" suits
    # headers whose leading cell names more than one category, such as
    # "视频时间轴" (video timeline) ahead of the real file and time columns.
    column_match: Literal["first", "last"] = "first"


class ScriptSettings(BaseModel):
    """Settings for script generation."""

    padding: float = Field(
        default=0.0,
        ge=0.0,
        allow_inf_nan=False,
        description="Seconds added on both sides of a clip",
    )
    dialect: ScriptDialect = ScriptDialect.BATCH
    output_dir: str = "output"
    output_extension: str = ".mp4"
    tool: str = "ffmpeg"

    @field_validator("output_extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        value = value.strip()
        if value and not value.startswith("."):
            value = "." + value
        return value

    @field_validator("output_dir", "tool")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class ClipBatchConfig(BaseModel):
    """Top-level clip-batch configuration."""

    parser: ParserSettings = Field(default_factory=ParserSettings)
    script: ScriptSettings = Field(default_factory=ScriptSettings)


def resolve_config_path(explicit: Path | None = None) -> Path | None:
    """Find the config file to use.

    Order: explicit path, ``$CLIP_BATCH_CONFIG``, ``./clip-batch.json``.

    Returns:
        Path to the config file, or None to use defaults
    """
    if explicit is not None:
        return explicit

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)

    local = Path.cwd() / DEFAULT_CONFIG_NAME
    if local.exists():
        return local

    return None


def load_config(path: Path | str | None = None) -> ClipBatchConfig:
    """Load configuration from a JSON file.

    Args:
        path: Config file path; None returns the defaults

    Returns:
        ClipBatchConfig object

    Raises:
        ConfigurationError: If the file is missing, not JSON, or invalid
    """
    if path is None:
        return ClipBatchConfig()

    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(
            f"Config file not found: {config_path}", context={"path": str(config_path)}
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Config file is not valid JSON: {e}", context={"path": str(config_path)}
        ) from e

    try:
        return ClipBatchConfig(**data)
    except (PydanticValidationError, TypeError) as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}", context={"path": str(config_path)}
        ) from e


def save_config(path: Path | str, config: ClipBatchConfig) -> Path:
    """Save configuration to a JSON file with atomic write.

    Args:
        path: Destination path
        config: Configuration to save

    Returns:
        Path to the saved config file
    """
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = config_path.with_name(config_path.name + ".tmp")

    # Atomic write: write to temp file, then rename
    with open(temp_path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

    temp_path.replace(config_path)
    return config_path
