"""Errors raised by the extraction API."""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for errors that fail an extraction call."""


class UnsupportedLanguageError(ExtractionError):
    """Raised when no recognizer is registered for the requested language.

    The caller should report the file as skipped.
    """

    def __init__(self, language: object) -> None:
        self.language = getattr(language, "value", language)
        super().__init__(f"Unsupported language: {self.language!r}")


__all__ = ["ExtractionError", "UnsupportedLanguageError"]
