"""Guest-language registry.

Each supported language provides a tokenizer/parser pair behind the
:class:`LanguageSupport` protocol. The registry is filled at import time and
only read afterwards, so concurrent extractions share it safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING, Protocol

from parse import ruby_lexer, ruby_parser

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from parse.ruby_parser import AttributeDocPolicy
    from symbols.models.scope import ScopeNode
    from symbols.models.tokens import Token


class LanguageTag(str, Enum):
    """Guest languages known to the anchor pipeline."""

    RUBY = "ruby"
    RUST = "rust"
    TOML = "toml"
    JAVASCRIPT = "javascript"
    ELIXIR = "elixir"
    JSON = "json"
    MARKDOWN = "markdown"


_EXTENSIONS: dict[str, LanguageTag] = {
    ".rb": LanguageTag.RUBY,
    ".rs": LanguageTag.RUST,
    ".toml": LanguageTag.TOML,
    ".js": LanguageTag.JAVASCRIPT,
    ".ex": LanguageTag.ELIXIR,
    ".exs": LanguageTag.ELIXIR,
    ".json": LanguageTag.JSON,
    ".md": LanguageTag.MARKDOWN,
    ".txt": LanguageTag.MARKDOWN,
}


def language_for_path(path: str | PurePath) -> LanguageTag | None:
    """Guess the guest language of a file from its extension."""
    return _EXTENSIONS.get(PurePath(path).suffix.lower())


class LanguageSupport(Protocol):
    """Tokenizer/parser pair for one guest language."""

    @property
    def tag(self) -> LanguageTag: ...

    def tokenize(self, source: str) -> Iterator[Token]: ...

    def parse(
        self,
        tokens: Iterable[Token],
        *,
        pragma_patterns: Iterable[str] = (),
        attribute_doc_policy: AttributeDocPolicy = "broadcast",
    ) -> ScopeNode: ...


@dataclass(frozen=True)
class RubySupport:
    tag: LanguageTag = LanguageTag.RUBY

    def tokenize(self, source: str) -> Iterator[Token]:
        return ruby_lexer.tokenize(source)

    def parse(
        self,
        tokens: Iterable[Token],
        *,
        pragma_patterns: Iterable[str] = (),
        attribute_doc_policy: AttributeDocPolicy = "broadcast",
    ) -> ScopeNode:
        return ruby_parser.parse(
            tokens,
            pragma_patterns=pragma_patterns,
            attribute_doc_policy=attribute_doc_policy,
        )


_REGISTRY: dict[LanguageTag, LanguageSupport] = {}


def register_language(support: LanguageSupport) -> None:
    """Register ``support`` under its tag, replacing any previous entry."""
    _REGISTRY[support.tag] = support


def get_language(language: LanguageTag | str) -> LanguageSupport | None:
    """Return the support registered for ``language``, or ``None``."""
    try:
        tag = LanguageTag(language)
    except ValueError:
        return None
    return _REGISTRY.get(tag)


def supported_languages() -> tuple[LanguageTag, ...]:
    return tuple(tag for tag in LanguageTag if tag in _REGISTRY)


register_language(RubySupport())


__all__ = [
    "LanguageSupport",
    "LanguageTag",
    "RubySupport",
    "get_language",
    "language_for_path",
    "register_language",
    "supported_languages",
]
