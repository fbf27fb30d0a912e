"""Public extraction entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING

import logging

import structlog

from extract.config import ExtractConfig
from extract.errors import UnsupportedLanguageError
from parse.registry import get_language
from symbols.anchors import AnchorGenerator
from symbols.builder import build

if TYPE_CHECKING:
    from parse.registry import LanguageTag
    from symbols.models.symbols import Symbol

# Bound to a stdlib logger: without configure_logging the events are
# dropped by the root logger instead of printed.
logger = structlog.wrap_logger(logging.getLogger(__name__))


def _is_private(symbol: Symbol) -> bool:
    return symbol.visibility == "private"


def extract(
    source: str,
    language: LanguageTag | str,
    *,
    config: ExtractConfig | None = None,
) -> list[Symbol]:
    """Extract documentable symbols from one source file.

    Pure transformation: no filesystem or network access. Each call owns its
    own parse tree and anchor collision table.

    Args:
        source: Full text of the source file.
        language: Guest language of ``source``.
        config: Extraction options; defaults apply when omitted.

    Returns:
        Symbols in declaration order, parents before their members.

    Raises:
        UnsupportedLanguageError: If no recognizer is registered for
            ``language``. Malformed source never raises.
    """
    support = get_language(language)
    if support is None:
        raise UnsupportedLanguageError(language)
    if config is None:
        config = ExtractConfig()

    logger.debug("extract.start", language=support.tag.value, size=len(source))

    root = support.parse(
        support.tokenize(source),
        pragma_patterns=config.pragma_patterns,
        attribute_doc_policy=config.attribute_doc_policy,
    )
    symbols = build(root, AnchorGenerator(config.anchor_separator))
    if not config.include_private:
        symbols = [symbol for symbol in symbols if not _is_private(symbol)]

    logger.debug("extract.done", language=support.tag.value, symbols=len(symbols))
    return symbols


__all__ = ["extract"]
