"""Public API: turn guest-language source text into anchored symbol records."""

from extract.api import extract
from extract.config import ConfigError, ExtractConfig, load_config
from extract.errors import ExtractionError, UnsupportedLanguageError
from extract.logging import configure_logging, configure_logging_from_config
from parse.registry import LanguageTag, language_for_path

__all__ = [
    "ConfigError",
    "ExtractConfig",
    "ExtractionError",
    "LanguageTag",
    "UnsupportedLanguageError",
    "configure_logging",
    "configure_logging_from_config",
    "extract",
    "language_for_path",
    "load_config",
]
