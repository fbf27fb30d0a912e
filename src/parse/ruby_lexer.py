"""Lexical scanner for Ruby source.

Produces a lazy stream of :class:`~symbols.models.tokens.Token` objects. The
scanner never fails: characters it does not recognize become single-character
punctuation tokens, and unterminated literals run to the end of input.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from symbols.models.tokens import Token, TokenKind

if TYPE_CHECKING:
    from collections.abc import Iterator

# ###############
# Public Interface
# ###############

KEYWORDS = frozenset(
    {
        "BEGIN",
        "END",
        "__ENCODING__",
        "__FILE__",
        "__LINE__",
        "__method__",
        "alias",
        "and",
        "begin",
        "break",
        "case",
        "class",
        "def",
        "defined?",
        "do",
        "else",
        "elsif",
        "end",
        "ensure",
        "false",
        "for",
        "if",
        "in",
        "module",
        "next",
        "nil",
        "not",
        "or",
        "redo",
        "rescue",
        "retry",
        "return",
        "self",
        "super",
        "then",
        "true",
        "undef",
        "unless",
        "until",
        "when",
        "while",
        "yield",
    }
)

# Keywords after which an operator (rather than an operand) is expected.
VALUE_KEYWORDS = frozenset(
    {
        "end",
        "self",
        "nil",
        "true",
        "false",
        "__FILE__",
        "__LINE__",
        "__ENCODING__",
        "__method__",
    }
)


def tokenize(source: str) -> Iterator[Token]:
    """Tokenize Ruby source text lazily.

    The returned iterator is single-pass and always ends with one EOF token.
    Comment lines are kept verbatim (marker included); ``=begin``/``=end``
    blocks yield one comment token per line.
    """
    return iter(_Lexer(source))


# ################
# Implementation
# ################

_OPERATORS = (
    "**=",
    "<=>",
    "===",
    "...",
    "<<=",
    ">>=",
    "&&=",
    "||=",
    "&.",
    "**",
    "==",
    "!=",
    ">=",
    "<=",
    "&&",
    "||",
    "<<",
    ">>",
    "=~",
    "!~",
    "=>",
    "->",
    "::",
    "..",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "|=",
    "&=",
    "^=",
)

_NUMBER = re.compile(
    r"0[xX][0-9a-fA-F_]+"
    r"|0[bB][01_]+"
    r"|0[oO]?[0-7_]+"
    r"|\d[\d_]*(?:\.\d[\d_]*)?(?:[eE][+-]?\d+)?[ri]?"
)
_WORD = re.compile(r"[A-Za-z_\x80-\U0010ffff][A-Za-z0-9_\x80-\U0010ffff]*")
_HEREDOC = re.compile(r"<<([~-]?)(['\"`]?)([A-Za-z_][A-Za-z0-9_]*)\2")
_GLOBAL_SPECIAL = frozenset("~*$?!@/\\;,.=:<>\"&`'+0123456789")

_PAIRS = {"(": ")", "[": "]", "{": "}", "<": ">"}
_PERCENT_TYPES = frozenset("qQwWiIrsx")
_PERCENT_RAW = frozenset("qwis")
_REGEX_FLAGS = frozenset("imxounse")


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str) -> None:
        self._src = source.replace("\r\n", "\n")
        self._pos = 0
        self._line = 1
        self._column = 1
        self._prev: Token | None = None
        self._pending_heredocs: list[tuple[str, bool]] = []

    def __iter__(self) -> Iterator[Token]:
        src = self._src
        length = len(src)
        while self._pos < length:
            ch = src[self._pos]

            if self._column == 1:
                if self._at_block_comment():
                    yield from self._block_comment()
                    continue
                if self._rest_of_line() == "__END__":
                    break

            if ch == "\n":
                yield self._emit(TokenKind.NEWLINE, self._pos + 1)
                if self._pending_heredocs:
                    self._skip_heredoc_bodies()
                continue

            if ch in " \t\f\v\r":
                self._advance_to(self._pos + 1)
                continue

            if ch == "\\" and src.startswith("\n", self._pos + 1):
                self._advance_to(self._pos + 2)
                continue

            if ch == "#":
                end = src.find("\n", self._pos)
                yield self._emit(TokenKind.COMMENT_LINE, length if end == -1 else end)
                continue

            yield self._scan_token(ch)

        yield Token(TokenKind.EOF, "", self._line, self._column)

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _advance_to(self, new_pos: int) -> None:
        chunk = self._src[self._pos : new_pos]
        newlines = chunk.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(chunk) - chunk.rfind("\n")
        else:
            self._column += len(chunk)
        self._pos = new_pos

    def _emit(self, kind: TokenKind, end: int) -> Token:
        token = Token(kind, self._src[self._pos : end], self._line, self._column)
        self._advance_to(end)
        if kind is not TokenKind.COMMENT_LINE:
            self._prev = token
        return token

    def _char(self, offset: int = 0) -> str:
        index = self._pos + offset
        if 0 <= index < len(self._src):
            return self._src[index]
        return ""

    def _rest_of_line(self) -> str:
        end = self._src.find("\n", self._pos)
        return self._src[self._pos : len(self._src) if end == -1 else end]

    def _operand_expected(self) -> bool:
        """Return True when the next token starts an operand, not an operator.

        Disambiguates ``/``, ``%``, ``?`` and ``<<`` the way Ruby does: after
        an operator or keyword they open a literal; after a method name they
        open a literal only when written like an argument (``foo /re/``).
        """
        prev = self._prev
        if prev is None or prev.kind is TokenKind.NEWLINE:
            return True
        if prev.kind is TokenKind.PUNCTUATION:
            return prev.text not in (")", "]", "}")
        if prev.kind is TokenKind.KEYWORD:
            return prev.text not in VALUE_KEYWORDS and prev.text != "def"
        if prev.kind is TokenKind.IDENTIFIER:
            return self._char(-1) in " \t" and self._char(1) not in " \t\n="
        return False

    # ------------------------------------------------------------------
    # Token scanners
    # ------------------------------------------------------------------

    def _scan_token(self, ch: str) -> Token:
        if ch.isdigit():
            match = _NUMBER.match(self._src, self._pos)
            end = match.end() if match else self._pos + 1
            return self._emit(TokenKind.NUMBER_LITERAL, end)

        if _WORD.match(ch):
            return self._scan_word()

        if ch == "@":
            return self._scan_sigil(2 if self._char(1) == "@" else 1)

        if ch == "$":
            if self._char(1) in _GLOBAL_SPECIAL and self._char(1):
                return self._emit(TokenKind.IDENTIFIER, self._pos + 2)
            return self._scan_sigil(1)

        if ch in "\"'`":
            end = self._scan_delimited(self._pos + 1, ch, ch, interpolate=ch != "'")
            return self._emit(TokenKind.STRING_LITERAL, end)

        if ch == "%" and self._operand_expected():
            token = self._scan_percent_literal()
            if token is not None:
                return token

        if ch == "/" and self._operand_expected():
            end = self._scan_delimited(self._pos + 1, "/", "/", interpolate=True)
            while end < len(self._src) and self._src[end] in _REGEX_FLAGS:
                end += 1
            return self._emit(TokenKind.STRING_LITERAL, end)

        if ch == "?" and self._operand_expected() and self._is_char_literal():
            width = 3 if self._char(1) == "\\" else 2
            return self._emit(TokenKind.STRING_LITERAL, self._pos + width)

        if ch == "<":
            token = self._scan_heredoc_opener()
            if token is not None:
                return token

        for op in _OPERATORS:
            if self._src.startswith(op, self._pos):
                return self._emit(TokenKind.PUNCTUATION, self._pos + len(op))

        return self._emit(TokenKind.PUNCTUATION, self._pos + 1)

    def _scan_word(self) -> Token:
        match = _WORD.match(self._src, self._pos)
        assert match is not None
        end = match.end()
        if (
            end < len(self._src)
            and self._src[end] in "?!"
            and self._src[end + 1 : end + 2] != "="
        ):
            end += 1
        text = self._src[self._pos : end]

        kind = TokenKind.KEYWORD if text in KEYWORDS else TokenKind.IDENTIFIER
        if kind is TokenKind.KEYWORD and self._keyword_used_as_name(end):
            kind = TokenKind.IDENTIFIER
        return self._emit(kind, end)

    def _keyword_used_as_name(self, end: int) -> bool:
        """Keywords after ``.``/``::``, as ``:symbol`` or as ``label:`` are names."""
        prev = self._prev
        if prev is not None and prev.kind is TokenKind.PUNCTUATION:
            if prev.text in (".", "&.", "::"):
                return True
            if prev.text == ":" and self._char(-1) == ":":
                return True
        return self._src[end : end + 1] == ":" and self._src[end + 1 : end + 2] != ":"

    def _scan_sigil(self, width: int) -> Token:
        match = _WORD.match(self._src, self._pos + width)
        if match is None:
            return self._emit(TokenKind.PUNCTUATION, self._pos + 1)
        return self._emit(TokenKind.IDENTIFIER, match.end())

    def _scan_delimited(
        self, start: int, opener: str, closer: str, *, interpolate: bool
    ) -> int:
        """Return the index just past the closing delimiter (or end of input)."""
        src = self._src
        length = len(src)
        depth = 0
        i = start
        while i < length:
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if interpolate and ch == "#" and src.startswith("{", i + 1):
                i = self._skip_interpolation(i + 2)
                continue
            if ch == closer:
                if depth == 0:
                    return i + 1
                depth -= 1
            elif ch == opener and opener != closer:
                depth += 1
            i += 1
        return length

    def _skip_interpolation(self, start: int) -> int:
        src = self._src
        length = len(src)
        depth = 1
        i = start
        while i < length:
            ch = src[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "\"'`":
                i = self._scan_delimited(i + 1, ch, ch, interpolate=ch != "'")
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1
        return length

    def _scan_percent_literal(self) -> Token | None:
        kind_char = self._char(1)
        offset = 1
        if kind_char in _PERCENT_TYPES:
            offset = 2
        opener = self._char(offset)
        if not opener or opener.isalnum() or opener.isspace():
            return None
        if offset == 1 and opener not in "([{<|!/^":
            return None
        closer = _PAIRS.get(opener, opener)
        interpolate = offset == 1 or kind_char not in _PERCENT_RAW
        end = self._scan_delimited(
            self._pos + offset + 1, opener, closer, interpolate=interpolate
        )
        if kind_char == "r":
            while end < len(self._src) and self._src[end] in _REGEX_FLAGS:
                end += 1
        return self._emit(TokenKind.STRING_LITERAL, end)

    def _is_char_literal(self) -> bool:
        nxt = self._char(1)
        if not nxt or nxt.isspace():
            return False
        if nxt == "\\":
            return bool(self._char(2))
        after = self._char(2)
        return not (after.isalnum() or after == "_")

    def _scan_heredoc_opener(self) -> Token | None:
        match = _HEREDOC.match(self._src, self._pos)
        if match is None:
            return None
        flavor, _quote, ident = match.groups()
        if not flavor and not (ident[0].isupper() and self._operand_expected()):
            return None
        self._pending_heredocs.append((ident, bool(flavor)))
        return self._emit(TokenKind.STRING_LITERAL, match.end())

    def _skip_heredoc_bodies(self) -> None:
        """Consume heredoc bodies that start after the current newline."""
        pending, self._pending_heredocs = self._pending_heredocs, []
        src = self._src
        for ident, indented in pending:
            while self._pos < len(src):
                end = src.find("\n", self._pos)
                line_end = len(src) if end == -1 else end + 1
                line = src[self._pos : line_end].rstrip("\n")
                self._advance_to(line_end)
                if (line.strip() if indented else line) == ident:
                    break

    def _at_block_comment(self) -> bool:
        if not self._src.startswith("=begin", self._pos):
            return False
        after = self._char(len("=begin"))
        return after == "" or after.isspace()

    def _block_comment(self) -> Iterator[Token]:
        while self._pos < len(self._src):
            line = self._rest_of_line()
            yield self._emit(TokenKind.COMMENT_LINE, self._pos + len(line))
            if self._pos < len(self._src):
                yield self._emit(TokenKind.NEWLINE, self._pos + 1)
            if line.startswith("=end") and (len(line) == 4 or line[4].isspace()):
                return


__all__ = ["KEYWORDS", "VALUE_KEYWORDS", "tokenize"]
