"""Parsing utilities for guest-language source files"""

from parse.registry import (
    LanguageSupport,
    LanguageTag,
    get_language,
    language_for_path,
    register_language,
    supported_languages,
)
from parse.ruby_lexer import tokenize
from parse.ruby_parser import parse

__all__ = [
    "LanguageSupport",
    "LanguageTag",
    "get_language",
    "language_for_path",
    "parse",
    "register_language",
    "supported_languages",
    "tokenize",
]
