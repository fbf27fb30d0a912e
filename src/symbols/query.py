"""Symbol lookup by query string, and source-range retrieval.

Queries name a symbol kind followed by optional bindings::

    class?name=Foo
    method?name=initialize&path=MyModule::Bar::initialize
    *?anchor=mymodule/pi

Binding values may contain ``\\``-escaped ``\\ = & ? # :`` characters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, get_args

from symbols.models.symbols import SymbolKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from symbols.models.symbols import Symbol

ANY_KIND = "*"
QUERY_BINDINGS = frozenset({"name", "path", "anchor"})
_ESCAPABLE = frozenset("\\=&?#:")
_VALID_KINDS = frozenset(get_args(SymbolKind))


class QueryError(ValueError):
    """Raised for a malformed symbol query."""


@dataclass(frozen=True)
class SymbolQuery:
    kind: str = ANY_KIND
    bindings: dict[str, str] = field(default_factory=dict)

    def matches(self, symbol: Symbol) -> bool:
        if self.kind != ANY_KIND and symbol.kind != self.kind:
            return False
        for key, value in self.bindings.items():
            if key == "name" and symbol.name != value:
                return False
            if key == "path" and "::".join(symbol.path) != value:
                return False
            if key == "anchor" and symbol.anchor != value:
                return False
        return True


def _split_bindings(text: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    key: list[str] = []
    value: list[str] = []
    current = key
    chars = iter(text)
    for char in chars:
        if char == "\\":
            escaped = next(chars, "")
            if escaped not in _ESCAPABLE:
                msg = f"Invalid escape '\\{escaped}' in query bindings"
                raise QueryError(msg)
            current.append(escaped)
        elif char == "=" and current is key:
            current = value
        elif char == "&":
            pairs.append(_binding("".join(key), "".join(value), current is value))
            key, value = [], []
            current = key
        else:
            current.append(char)
    if key or value:
        pairs.append(_binding("".join(key), "".join(value), current is value))
    return pairs


def _binding(key: str, value: str, has_value: bool) -> tuple[str, str]:
    if not key.isalnum() or not has_value:
        msg = f"Invalid query binding '{key}'"
        raise QueryError(msg)
    if key not in QUERY_BINDINGS:
        msg = (
            f"Unknown query binding '{key}'. "
            f"Valid bindings: {', '.join(sorted(QUERY_BINDINGS))}"
        )
        raise QueryError(msg)
    return key, value


def parse_query(query: str) -> SymbolQuery:
    """Parse ``kind?key=value&key=value`` into a :class:`SymbolQuery`."""
    kind, sep, rest = query.partition("?")
    kind = kind.strip() or ANY_KIND
    if kind != ANY_KIND and kind not in _VALID_KINDS:
        msg = f"Unknown symbol kind '{kind}' in query '{query}'"
        raise QueryError(msg)
    bindings = dict(_split_bindings(rest)) if sep else {}
    return SymbolQuery(kind=kind, bindings=bindings)


def find_symbol(symbols: Iterable[Symbol], query: str | SymbolQuery) -> Symbol | None:
    """Return the first symbol, in declaration order, matching ``query``."""
    if isinstance(query, str):
        query = parse_query(query)
    for symbol in symbols:
        if query.matches(symbol):
            return symbol
    return None


def fetch_lines(source: str, symbol: Symbol) -> str:
    """Return the source text of ``symbol``, doc comments included.

    Unclosed declarations run to the end of ``source``.
    """
    lines = source.splitlines()
    end = symbol.end_line if symbol.end_line is not None else len(lines)
    return "\n".join(lines[symbol.start_line - 1 : end])


__all__ = [
    "ANY_KIND",
    "QueryError",
    "SymbolQuery",
    "fetch_lines",
    "find_symbol",
    "parse_query",
]
