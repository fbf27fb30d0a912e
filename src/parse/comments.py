"""Doc-comment collection.

A doc block is the run of own-line comments that ends on the line directly
above a declaration. A blank line ends a run; a later run replaces it.
Pragma-like lines (magic comments, linter directives, ``ANCHOR:`` markers)
never become documentation and do not break a run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from symbols.models.scope import CommentBlock

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from symbols.models.tokens import Token


@dataclass(frozen=True)
class CommentStyle:
    """Language-specific comment rules used by :class:`CommentCollector`.

    ``strip`` removes the comment marker from one comment line and returns
    ``None`` for lines that only delimit a block (e.g. ``=begin``).
    """

    strip: Callable[[str], str | None]
    pragmas: tuple[re.Pattern[str], ...] = field(default_factory=tuple)


def _strip_ruby_comment(text: str) -> str | None:
    if text.startswith("#"):
        body = text[1:]
        return body[1:] if body.startswith(" ") else body
    if text.startswith(("=begin", "=end")):
        return None
    return text


RUBY_COMMENT_STYLE = CommentStyle(
    strip=_strip_ruby_comment,
    pragmas=(
        re.compile(r"^#!"),
        re.compile(r"^#\s*-\*-.*-\*-\s*$"),
        re.compile(
            r"^#\s*(?:frozen_string_literal|encoding|coding|warn_indent"
            r"|warn_past_scope|shareable_constant_value|typed)\s*:",
            re.IGNORECASE,
        ),
        re.compile(r"^#\s*rubocop\s*:"),
        re.compile(r"^#\s*vim?:"),
        re.compile(r"^#\s*ANCHOR(?:_END)?:"),
    ),
)


class CommentCollector:
    """Tracks the current run of own-line comments while a parser scans."""

    def __init__(self, style: CommentStyle, extra_pragmas: Iterable[str] = ()) -> None:
        self._style = style
        self._pragmas = (*style.pragmas, *(re.compile(p) for p in extra_pragmas))
        self._run: list[Token] = []
        self._last_line = 0
        self._carried = False

    def is_pragma(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self._pragmas)

    def feed(self, token: Token) -> None:
        """Record an own-line comment token."""
        adjacent = bool(self._run) and token.line == self._last_line + 1
        if self.is_pragma(token.text):
            if adjacent:
                self._last_line = token.line
            return
        if adjacent and not self._carried:
            self._run.append(token)
        else:
            self._run = [token]
        self._last_line = token.line
        self._carried = False

    def discard(self) -> None:
        """Drop the pending run; code that is not a declaration intervened."""
        self._run = []
        self._carried = False

    def carry(self, block: CommentBlock | None, line: int) -> None:
        """Keep ``block`` pending across the code on ``line``.

        The next declaration on the following line takes it as its doc. A
        comment written after ``line`` starts a fresh run instead of joining it.
        """
        if block is None:
            return
        self._run = list(block.tokens)
        self._last_line = line
        self._carried = True

    def take(self, line: int) -> CommentBlock | None:
        """Return the pending run if it ends directly above ``line``."""
        run, self._run = self._run, []
        self._carried = False
        if not run or self._last_line != line - 1:
            return None
        lines = [
            stripped
            for token in run
            if (stripped := self._style.strip(token.text)) is not None
        ]
        return CommentBlock(tokens=run, lines=lines)


__all__ = ["RUBY_COMMENT_STYLE", "CommentCollector", "CommentStyle"]
