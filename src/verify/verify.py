"""Determinism verification for extracted symbol records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from extract.api import extract
from symbols.utils import dump_jsonl

if TYPE_CHECKING:
    from extract.config import ExtractConfig
    from parse.registry import LanguageTag
    from symbols.models.symbols import Symbol


@dataclass(frozen=True)
class DeterminismResult:
    ok: bool
    mismatches: tuple[str, ...] = field(default_factory=tuple)
    missing: tuple[str, ...] = field(default_factory=tuple)
    extra: tuple[str, ...] = field(default_factory=tuple)


def _serialize(symbols: list[Symbol]) -> dict[str, bytes]:
    """Map each anchor to its JSONL record, preserving output order."""
    return dict(zip([s.anchor for s in symbols], dump_jsonl(symbols).splitlines()))


def verify_determinism(
    source: str,
    language: LanguageTag | str,
    config: ExtractConfig | None = None,
) -> DeterminismResult:
    """Verify that extracting ``source`` twice yields identical records.

    Both runs are serialized to JSONL and compared line by line, keyed by
    anchor. Anchors only present in the first run are reported as missing,
    anchors only present in the second run as extra, and anchors whose
    records differ (or whose position changed) as mismatches.

    Raises:
        UnsupportedLanguageError: If ``language`` has no recognizer.
    """
    first = _serialize(extract(source, language, config=config))
    second = _serialize(extract(source, language, config=config))

    missing = sorted(set(first) - set(second))
    extra = sorted(set(second) - set(first))

    common = first.keys() & second.keys()
    mismatches = {anchor for anchor in common if first[anchor] != second[anchor]}
    # Records that moved relative to each other also break determinism.
    first_order = [anchor for anchor in first if anchor in second]
    second_order = [anchor for anchor in second if anchor in first]
    mismatches.update(a for a, b in zip(first_order, second_order) if a != b)

    ok = not missing and not extra and not mismatches
    return DeterminismResult(
        ok=ok,
        mismatches=tuple(sorted(mismatches)),
        missing=tuple(missing),
        extra=tuple(extra),
    )
