"""Token models shared by the guest-language lexers."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenKind(enum.Enum):
    """Token categories produced by every lexer."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    PUNCTUATION = "punctuation"
    COMMENT_LINE = "comment_line"
    STRING_LITERAL = "string_literal"
    NUMBER_LITERAL = "number_literal"
    NEWLINE = "newline"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        kind: The token category.
        text: Raw source text of the token. Comment lines keep their marker.
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
    """

    kind: TokenKind
    text: str
    line: int
    column: int

    @property
    def end_line(self) -> int:
        return self.line + self.text.count("\n")

    @property
    def end_column(self) -> int:
        """1-based column just past the last character of the token."""
        if "\n" in self.text:
            return len(self.text.rsplit("\n", 1)[1]) + 1
        return self.column + len(self.text)

    def is_punct(self, *texts: str) -> bool:
        return self.kind is TokenKind.PUNCTUATION and self.text in texts

    def is_keyword(self, *texts: str) -> bool:
        return self.kind is TokenKind.KEYWORD and self.text in texts


__all__ = ["Token", "TokenKind"]
