"""JSONL serialization for symbol records."""

from __future__ import annotations

from typing import TYPE_CHECKING

import orjson

from symbols.models.symbols import Symbol

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


def _dump_record(symbol: Symbol) -> bytes:
    return orjson.dumps(symbol.model_dump(mode="json"), option=orjson.OPT_SORT_KEYS)


def dump_jsonl(symbols: Iterable[Symbol]) -> bytes:
    """Serialize symbols, one JSON object per line, keys sorted."""
    return b"".join(_dump_record(symbol) + b"\n" for symbol in symbols)


def write_jsonl(path: Path, symbols: Iterable[Symbol]) -> None:
    with path.open("wb") as f:
        for symbol in symbols:
            f.write(_dump_record(symbol))
            f.write(b"\n")


def load_jsonl(path: Path) -> list[Symbol]:
    """Load symbols written by :func:`write_jsonl`."""
    records: list[Symbol] = []
    with path.open("rb") as handle:
        for line in handle:
            line = line.strip()
            if line:
                records.append(Symbol.model_validate(orjson.loads(line)))
    return records


__all__ = ["dump_jsonl", "load_jsonl", "write_jsonl"]
