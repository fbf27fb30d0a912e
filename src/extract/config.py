from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, field_validator

from parse.ruby_parser import AttributeDocPolicy

CONFIG_FILENAME = "anchormap.toml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class ExtractConfig(BaseModel):
    """Configuration for symbol extraction and anchoring."""

    model_config = ConfigDict(extra="forbid")

    anchor_separator: str = Field(
        default="/",
        description="String joining path segments in anchors",
    )
    attribute_doc_policy: AttributeDocPolicy = Field(
        default="broadcast",
        description=(
            "Doc attachment for multi-name attr_* statements: "
            "'broadcast' to every name, 'first' to the first name only"
        ),
    )
    pragma_patterns: list[str] = Field(
        default_factory=list,
        description="Extra regexes for comment lines that are never documentation",
    )
    include_private: bool = Field(
        default=True,
        description="Keep private methods and attributes in the output",
    )
    log_level: LogLevel = Field(
        default="INFO",
        description="Log level applied by configure_logging_from_config",
    )

    @field_validator("anchor_separator")
    @classmethod
    def validate_anchor_separator(cls, v: str) -> str:
        if not v:
            msg = "anchor_separator must be non-empty"
            raise ValueError(msg)
        if any(char.isalnum() for char in v):
            msg = f"anchor_separator '{v}' must not contain letters or digits"
            raise ValueError(msg)
        return v

    @field_validator("pragma_patterns")
    @classmethod
    def validate_pragma_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                msg = f"Invalid pragma pattern '{pattern}': {exc}"
                raise ValueError(msg) from exc
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept level names in any case (``debug``, ``Debug``)."""
        if isinstance(v, str):
            return v.upper()
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> ExtractConfig:
    """Load configuration from anchormap.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return ExtractConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return ExtractConfig.model_validate(data)
    except ValueError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


__all__ = ["CONFIG_FILENAME", "ConfigError", "ExtractConfig", "load_config"]
