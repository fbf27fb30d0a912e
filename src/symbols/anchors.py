"""Stable, URL-safe anchor identifiers for symbols."""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from symbols.models.scope import DeclarationKind

DEFAULT_SEPARATOR = "/"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify_segment(segment: str) -> str:
    """Transliterate one path segment to lowercase ``[a-z0-9-]``.

    Segments made only of punctuation (operator methods like ``[]`` or
    ``<=>``) would vanish; they are spelled out as ``op-`` plus the hex code
    points of their characters instead.
    """
    ascii_text = (
        unicodedata.normalize("NFKD", segment).encode("ascii", "ignore").decode("ascii")
    )
    slug = _NON_ALNUM.sub("-", ascii_text.lower()).strip("-")
    if slug:
        return slug
    return "op-" + "-".join(f"{ord(char):x}" for char in segment)


class AnchorGenerator:
    """Issues unique anchors within one extraction call.

    The collision table lives on the instance; create a new generator for
    every call so that results never depend on earlier calls.
    """

    def __init__(self, separator: str = DEFAULT_SEPARATOR) -> None:
        self.separator = separator
        self._issued: set[str] = set()

    def base_anchor(self, path: Sequence[str]) -> str:
        return self.separator.join(slugify_segment(segment) for segment in path)

    def anchor_for(self, path: Sequence[str], kind: DeclarationKind) -> str:
        """Return a unique anchor for ``path``.

        The first claimant of a base anchor keeps it. Later ones get the kind
        appended (``foo-constant``), then a counter from 2 (``foo-constant-2``).
        """
        base = self.base_anchor(path)
        candidate = base
        if candidate in self._issued:
            candidate = f"{base}-{kind}"
            counter = 2
            while candidate in self._issued:
                candidate = f"{base}-{kind}-{counter}"
                counter += 1
        self._issued.add(candidate)
        return candidate


__all__ = ["DEFAULT_SEPARATOR", "AnchorGenerator", "slugify_segment"]
