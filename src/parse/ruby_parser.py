"""Scope-aware, error-tolerant parser for Ruby declarations.

The parser does not build a syntax tree for expressions. It tracks enough
structure (blocks closed by ``end``, brackets, statement boundaries) to find
the declarations that matter for documentation and to place them in the
right module/class scope:

- ``module`` / ``class`` (including ``A::B`` compound names and ``class << self``)
- constant assignments (``NAME = value``)
- ``attr_reader`` / ``attr_writer`` / ``attr_accessor`` / ``attr``
- ``def`` (instance, singleton, setter, operator and endless methods)

Anything else is skipped one statement at a time. Malformed input never
raises; declarations recognized before the problem are kept.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import structlog

from parse.comments import RUBY_COMMENT_STYLE, CommentCollector
from parse.ruby_lexer import VALUE_KEYWORDS
from symbols.models.scope import (
    AttributeDecl,
    ClassDecl,
    ConstantDecl,
    MethodDecl,
    ModuleDecl,
    ScopeKind,
    ScopeNode,
)
from symbols.models.tokens import Token, TokenKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from symbols.models.scope import (
        AttributeMode,
        CommentBlock,
        Declaration,
        ScopeDecl,
        Visibility,
    )

logger = structlog.wrap_logger(logging.getLogger(__name__))

AttributeDocPolicy = Literal["broadcast", "first"]

ATTRIBUTE_MODES: dict[str, AttributeMode] = {
    "attr": "reader",
    "attr_reader": "reader",
    "attr_writer": "writer",
    "attr_accessor": "accessor",
}
VISIBILITY_NAMES: dict[str, Visibility] = {
    "public": "public",
    "protected": "protected",
    "private": "private",
}
INITIALIZER_NAME = "initialize"

# Keywords that may be followed by a modifier ``if``/``unless``/``while``.
_VALUE_LIKE_KEYWORDS = VALUE_KEYWORDS | {
    "return",
    "break",
    "next",
    "redo",
    "retry",
    "yield",
    "super",
}
# A newline after one of these does not end the statement.
_CONTINUATION_PUNCT = frozenset(
    {
        ",",
        ".",
        "&.",
        "::",
        "=",
        "+",
        "-",
        "*",
        "/",
        "%",
        "**",
        "||",
        "&&",
        "=>",
        "==",
        "!=",
        "<",
        ">",
        "<=",
        ">=",
        "+=",
        "-=",
        "*=",
        "||=",
        "&&=",
        "<<",
        "\\",
    }
)
_CONTINUATION_KEYWORDS = frozenset({"and", "or", "not"})
# Keywords at the start of a line that end an unclosed ``(`` or ``[`` run.
_RECOVERY_KEYWORDS = frozenset({"def", "class", "module"})

FrameKind = Literal["top", "module", "class", "singleton", "def", "block"]


def parse(
    tokens: Iterable[Token],
    *,
    pragma_patterns: Iterable[str] = (),
    attribute_doc_policy: AttributeDocPolicy = "broadcast",
) -> ScopeNode:
    """Parse a Ruby token stream into a scope tree.

    Args:
        tokens: Tokens from :func:`parse.ruby_lexer.tokenize` (consumed once).
        pragma_patterns: Extra regexes for comment lines that are never docs.
        attribute_doc_policy: ``"broadcast"`` attaches the doc block of a
            multi-name ``attr_*`` statement to every name, ``"first"`` only to
            the first name.

    Returns:
        The ``TOP_LEVEL`` scope node.
    """
    return _RubyParser(
        tokens,
        pragma_patterns=pragma_patterns,
        attribute_doc_policy=attribute_doc_policy,
    ).parse()


@dataclass
class _Frame:
    """One open block. Frames with a ``scope`` accept declarations."""

    kind: FrameKind
    scope: ScopeNode | None = None
    decl: Declaration | None = None
    visibility: Visibility = "public"
    singleton: bool = False

    @property
    def is_scope(self) -> bool:
        return self.scope is not None


class _TokenStream:
    """Lookahead buffer over a single-pass token iterator.

    Comment tokens never reach the parser: own-line comments are handed to the
    collector as they are consumed, trailing comments are dropped. Consuming
    any code token discards the collector's pending run.
    """

    def __init__(self, tokens: Iterable[Token], collector: CommentCollector) -> None:
        self._tokens: Iterator[Token] = iter(tokens)
        self._buffer: deque[Token] = deque()
        self._collector = collector
        self._eof = Token(TokenKind.EOF, "", 1, 1)
        self._last_code_line = 0

    def _pull(self) -> bool:
        token = next(self._tokens, None)
        if token is None:
            return False
        if token.kind is TokenKind.EOF:
            self._eof = token
        self._buffer.append(token)
        return True

    def _route_comment(self, token: Token) -> None:
        if token.line != self._last_code_line:
            self._collector.feed(token)

    def peek(self, offset: int = 0) -> Token:
        """Return the ``offset``-th upcoming non-comment token."""
        while True:
            if not self._buffer and not self._pull():
                return self._eof
            if self._buffer[0].kind is not TokenKind.COMMENT_LINE:
                break
            self._route_comment(self._buffer.popleft())

        index = 0
        seen = 0
        while True:
            if index >= len(self._buffer) and not self._pull():
                return self._eof
            token = self._buffer[index]
            if token.kind is not TokenKind.COMMENT_LINE:
                if seen == offset or token.kind is TokenKind.EOF:
                    return token
                seen += 1
            index += 1

    def advance(self) -> Token:
        while True:
            if not self._buffer and not self._pull():
                return self._eof
            token = self._buffer[0]
            if token.kind is TokenKind.EOF:
                return token
            self._buffer.popleft()
            if token.kind is TokenKind.COMMENT_LINE:
                self._route_comment(token)
                continue
            if token.kind is not TokenKind.NEWLINE:
                self._collector.discard()
                self._last_code_line = token.end_line
            return token


def _is_value(token: Token | None) -> bool:
    """True when ``token`` ends an operand, so a following keyword is a modifier."""
    if token is None:
        return False
    if token.kind in (
        TokenKind.IDENTIFIER,
        TokenKind.NUMBER_LITERAL,
        TokenKind.STRING_LITERAL,
    ):
        return True
    if token.kind is TokenKind.PUNCTUATION:
        return token.text in (")", "]", "}")
    if token.kind is TokenKind.KEYWORD:
        return token.text in _VALUE_LIKE_KEYWORDS
    return False


def _adjacent(left: Token, right: Token) -> bool:
    return left.end_line == right.line and left.end_column == right.column


def render_tokens(tokens: list[Token]) -> str:
    """Rebuild source text for a token run, preserving spacing and line breaks."""
    parts: list[str] = []
    prev: Token | None = None
    for token in tokens:
        if prev is not None:
            if token.line > prev.end_line:
                parts.append("\n" * (token.line - prev.end_line))
                parts.append(" " * (token.column - 1))
            else:
                parts.append(" " * max(token.column - prev.end_column, 0))
        parts.append(token.text)
        prev = token
    return "".join(parts)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in "\"'" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _symbol_names(tokens: list[Token]) -> list[str]:
    """Names from a ``:a, :b, "c"`` argument list."""
    names: list[str] = []
    pending_colon: Token | None = None
    for token in tokens:
        if token.is_punct(":"):
            pending_colon = token
            continue
        if pending_colon is not None and _adjacent(pending_colon, token):
            if token.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
                names.append(token.text)
            elif token.kind is TokenKind.STRING_LITERAL:
                names.append(_unquote(token.text))
        elif token.kind is TokenKind.STRING_LITERAL and token.text[:1] in "\"'":
            names.append(_unquote(token.text))
        pending_colon = None
    return [name for name in names if name]


class _RubyParser:
    def __init__(
        self,
        tokens: Iterable[Token],
        *,
        pragma_patterns: Iterable[str],
        attribute_doc_policy: AttributeDocPolicy,
    ) -> None:
        self._collector = CommentCollector(RUBY_COMMENT_STYLE, pragma_patterns)
        self._stream = _TokenStream(tokens, self._collector)
        self._root = ScopeNode(kind=ScopeKind.TOP_LEVEL)
        self._frames: list[_Frame] = [_Frame("top", scope=self._root)]
        self._scope_decls: dict[int, ScopeDecl] = {}
        self._broadcast_docs = attribute_doc_policy == "broadcast"
        self._statement_prev: Token | None = None
        self._loop_do_pending = False
        self._recording: list[Token] | None = None

    def parse(self) -> ScopeNode:
        while True:
            self._skip_separators()
            token = self._stream.peek()
            if token.kind is TokenKind.EOF:
                break
            self._statement(token)

        if len(self._frames) > 1:
            logger.debug(
                "parse.unclosed_blocks",
                count=len(self._frames) - 1,
                kinds=[frame.kind for frame in self._frames[1:]],
            )
        return self._root

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _take(self) -> Token:
        token = self._stream.advance()
        if token.kind is not TokenKind.NEWLINE:
            self._statement_prev = token
            if self._recording is not None and token.kind is not TokenKind.EOF:
                self._recording.append(token)
        return token

    def _skip_separators(self) -> None:
        while True:
            token = self._stream.peek()
            if token.kind is TokenKind.NEWLINE or token.is_punct(";"):
                self._stream.advance()
                continue
            break
        self._statement_prev = None
        self._loop_do_pending = False

    def _on_same_line(self, offset: int, line: int) -> Token | None:
        token = self._stream.peek(offset)
        if token.kind in (TokenKind.NEWLINE, TokenKind.EOF) or token.line != line:
            return None
        return token

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statement(self, token: Token) -> None:
        frame = self._frames[-1]
        if frame.is_scope:
            if self._declaration(token, frame):
                return
            logger.debug("parse.skipped_statement", line=token.line, token=token.text)
        self._consume_statement()

    def _declaration(self, token: Token, frame: _Frame) -> bool:
        """Parse a declaration starting at ``token``; False if it is not one."""
        if token.is_keyword("module"):
            self._parse_module(self._collector.take(token.line))
            return True

        if token.is_keyword("class"):
            following = self._stream.peek(1)
            if following.is_punct("<<"):
                self._collector.take(token.line)
                self._parse_singleton_class(frame)
            else:
                self._parse_class(self._collector.take(token.line))
            return True

        if token.is_keyword("def"):
            self._parse_def(self._collector.take(token.line), frame)
            return True

        if token.kind is not TokenKind.IDENTIFIER:
            return False

        following = self._on_same_line(1, token.line)

        if token.text in ATTRIBUTE_MODES and following is not None:
            if following.is_punct(":", "(") or (
                following.kind is TokenKind.STRING_LITERAL
            ):
                self._parse_attributes(self._collector.take(token.line), frame)
                return True

        if token.text in VISIBILITY_NAMES:
            self._parse_visibility(self._collector.take(token.line), frame)
            return True

        if following is not None and following.is_keyword("def"):
            # Method-decorating calls: ``memoize def x``, ``private_class_method def self.x``
            doc = self._collector.take(token.line)
            self._take()
            visibility: Visibility | None = (
                "private" if token.text == "private_class_method" else None
            )
            self._parse_def(doc, frame, visibility=visibility)
            return True

        if (
            token.text[:1].isupper()
            and following is not None
            and following.is_punct("=")
        ):
            self._parse_constant(self._collector.take(token.line), frame)
            return True

        return False

    def _consume_statement(self) -> list[Token]:
        """Consume tokens up to the end of the current statement.

        Tracks bracket depth and ``end``-terminated blocks opened along the
        way. Returns the consumed code tokens (newlines excluded), including
        those read while skipping over nested ``def`` signatures.

        A brace block may span lines and hold method definitions; only an
        unclosed ``(`` or ``[`` gives up at a line starting a declaration.
        """
        collected: list[Token] = []
        outer, self._recording = self._recording, collected
        brackets: list[str] = []
        last: Token | None = None
        while True:
            token = self._stream.peek()
            if token.kind is TokenKind.EOF:
                break
            if token.kind is TokenKind.NEWLINE:
                if brackets:
                    if brackets[-1] != "{" and self._stream.peek(1).is_keyword(
                        *_RECOVERY_KEYWORDS
                    ):
                        logger.debug("parse.unbalanced_brackets", line=token.line)
                        break
                    self._stream.advance()
                    continue
                if self._continues(last):
                    self._stream.advance()
                    continue
                break
            if not brackets and token.is_punct(";"):
                break

            prev = self._statement_prev
            token = self._take()
            if token.is_punct("(", "[", "{"):
                brackets.append(token.text)
            elif token.is_punct(")", "]", "}"):
                if brackets:
                    brackets.pop()
            elif token.kind is TokenKind.KEYWORD:
                self._track_block(token, prev)
            last = token

        self._recording = outer
        self._loop_do_pending = False
        return collected

    def _continues(self, last: Token | None) -> bool:
        if last is not None:
            if last.kind is TokenKind.PUNCTUATION and last.text in _CONTINUATION_PUNCT:
                return True
            if last.is_keyword(*_CONTINUATION_KEYWORDS):
                return True
        return self._stream.peek(1).is_punct(".", "&.")

    def _track_block(self, token: Token, prev: Token | None) -> None:
        text = token.text
        if text == "end":
            self._close_block(token)
        elif text == "do":
            if self._loop_do_pending:
                self._loop_do_pending = False
            else:
                self._push_block()
        elif text in ("if", "unless"):
            if not _is_value(prev):
                self._push_block(transparent=True)
        elif text in ("while", "until"):
            if not _is_value(prev):
                self._push_block()
                self._loop_do_pending = True
        elif text == "for":
            self._push_block()
            self._loop_do_pending = True
        elif text in ("case", "begin"):
            self._push_block(transparent=True)
        elif text in ("module", "class"):
            self._push_block()
        elif text == "def":
            _name, _singleton, endless = self._read_def_head()
            if not endless:
                self._push_block("def")

    def _push_block(self, kind: FrameKind = "block", *, transparent: bool = False) -> None:
        """Open an ``end``-terminated block.

        Transparent blocks (conditionals, ``begin``) keep accepting
        declarations for the enclosing scope.
        """
        parent = self._frames[-1]
        if transparent and parent.is_scope:
            self._frames.append(
                _Frame(
                    kind,
                    scope=parent.scope,
                    visibility=parent.visibility,
                    singleton=parent.singleton,
                )
            )
        else:
            self._frames.append(_Frame(kind))

    def _close_block(self, token: Token) -> None:
        if len(self._frames) == 1:
            logger.debug("parse.stray_end", line=token.line)
            return
        frame = self._frames.pop()
        if frame.decl is not None:
            frame.decl.end_line = token.line

    # ------------------------------------------------------------------
    # Modules and classes
    # ------------------------------------------------------------------

    def _read_const_path(self) -> list[str]:
        segments: list[str] = []
        if self._stream.peek().is_punct("::"):
            self._take()
        if self._stream.peek().kind is not TokenKind.IDENTIFIER:
            return segments
        segments.append(self._take().text)
        while (
            self._stream.peek().is_punct("::")
            and self._stream.peek(1).kind is TokenKind.IDENTIFIER
        ):
            self._take()
            segments.append(self._take().text)
        return segments

    def _open_scope(
        self,
        decl_type: type[ScopeDecl],
        kind: ScopeKind,
        segments: list[str],
        keyword: Token,
        doc: CommentBlock | None,
    ) -> ScopeDecl:
        parent = self._frames[-1].scope
        assert parent is not None
        frame_kind: FrameKind = "module" if kind is ScopeKind.MODULE else "class"
        name = "::".join(segments)
        node = parent.find_child(kind, name)
        if node is not None:
            decl = self._scope_decls[id(node)]
            if decl.doc is None:
                decl.doc = doc
            self._frames.append(_Frame(frame_kind, scope=node))
            return decl

        node = parent.add_child(kind, name)
        decl = decl_type(
            name=segments[-1],
            line=keyword.line,
            doc=doc,
            namespace=tuple(segments[:-1]),
            scope=node,
        )
        parent.declarations.append(decl)
        self._scope_decls[id(node)] = decl
        self._frames.append(_Frame(frame_kind, scope=node, decl=decl))
        return decl

    def _parse_module(self, doc: CommentBlock | None) -> None:
        keyword = self._take()
        segments = self._read_const_path()
        if not segments:
            logger.debug("parse.anonymous_module", line=keyword.line)
            self._push_block()
        else:
            self._open_scope(ModuleDecl, ScopeKind.MODULE, segments, keyword, doc)
        self._consume_statement()

    def _parse_class(self, doc: CommentBlock | None) -> None:
        keyword = self._take()
        segments = self._read_const_path()
        if not segments:
            logger.debug("parse.anonymous_class", line=keyword.line)
            self._push_block()
            self._consume_statement()
            return

        has_superclass = self._stream.peek().is_punct("<")
        if has_superclass:
            self._take()
        decl = self._open_scope(ClassDecl, ScopeKind.CLASS, segments, keyword, doc)
        rest = self._consume_statement()
        if has_superclass and rest and isinstance(decl, ClassDecl):
            if decl.superclass is None:
                decl.superclass = render_tokens(rest)

    def _parse_singleton_class(self, frame: _Frame) -> None:
        self._take()
        self._take()
        self._frames.append(_Frame("singleton", scope=frame.scope, singleton=True))
        self._consume_statement()

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    def _read_method_name(self) -> tuple[str | None, bool]:
        stream = self._stream
        singleton = False
        head = stream.peek()
        dot = stream.peek(1)
        if (
            head.is_keyword("self") or head.kind is TokenKind.IDENTIFIER
        ) and dot.is_punct(".") and head.line == dot.line:
            self._take()
            self._take()
            singleton = True

        token = stream.peek()
        if token.kind in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
            self._take()
            name = token.text
            following = stream.peek()
            if (
                following.is_punct("=")
                and _adjacent(token, following)
                and name[-1:] not in ("?", "!")
            ):
                after = stream.peek(1)
                if after.is_punct("(") or (
                    after.kind is TokenKind.IDENTIFIER and after.line == token.line
                ):
                    self._take()
                    name += "="
            return name, singleton

        if token.kind is TokenKind.PUNCTUATION and token.text not in ("(", ";", "="):
            self._take()
            name = token.text
            for suffix in ("]", "=", "@"):
                following = stream.peek()
                if following.is_punct(suffix) and _adjacent(token, following):
                    if suffix == "]" and name != "[":
                        continue
                    token = self._take()
                    name += suffix
            return name, singleton

        return None, singleton

    def _read_def_head(self) -> tuple[str | None, bool, bool]:
        """Consume ``def`` and its signature; return (name, singleton, endless)."""
        keyword = self._statement_prev
        name, singleton = self._read_method_name()
        stream = self._stream
        line = keyword.line if keyword is not None else stream.peek().line

        if stream.peek().is_punct("("):
            depth = 0
            while True:
                token = stream.peek()
                if token.kind is TokenKind.EOF:
                    break
                if token.kind is TokenKind.NEWLINE:
                    stream.advance()
                    continue
                self._take()
                if token.is_punct("(", "[", "{"):
                    depth += 1
                elif token.is_punct(")", "]", "}"):
                    depth -= 1
                    if depth <= 0:
                        break
            line = self._statement_prev.line if self._statement_prev else line

        following = stream.peek()
        endless = following.is_punct("=") and following.line == line
        if endless:
            self._take()
        return name, singleton, endless

    def _parse_def(
        self,
        doc: CommentBlock | None,
        frame: _Frame,
        *,
        visibility: Visibility | None = None,
    ) -> None:
        keyword = self._take()
        name, singleton, endless = self._read_def_head()
        if name is None:
            logger.debug("parse.unnamed_def", line=keyword.line)
            if not endless:
                self._push_block("def")
            self._consume_statement()
            return

        singleton = singleton or frame.singleton
        decl = MethodDecl(
            name=name,
            line=keyword.line,
            doc=doc,
            is_initializer=name == INITIALIZER_NAME and not singleton,
            singleton=singleton,
            visibility=visibility or frame.visibility,
        )
        assert frame.scope is not None
        frame.scope.declarations.append(decl)

        if endless:
            rest = self._consume_statement()
            decl.end_line = rest[-1].end_line if rest else keyword.line
            return

        self._frames.append(_Frame("def", decl=decl))
        self._consume_statement()

    # ------------------------------------------------------------------
    # Attributes, visibility and constants
    # ------------------------------------------------------------------

    def _parse_attributes(
        self,
        doc: CommentBlock | None,
        frame: _Frame,
        *,
        visibility: Visibility | None = None,
    ) -> None:
        keyword = self._take()
        mode = ATTRIBUTE_MODES[keyword.text]
        rest = self._consume_statement()
        end_line = rest[-1].end_line if rest else keyword.line
        assert frame.scope is not None
        for index, name in enumerate(_symbol_names(rest)):
            frame.scope.declarations.append(
                AttributeDecl(
                    name=name,
                    line=keyword.line,
                    doc=doc if index == 0 or self._broadcast_docs else None,
                    end_line=end_line,
                    mode=mode,
                    visibility=visibility or frame.visibility,
                )
            )

    def _parse_visibility(self, doc: CommentBlock | None, frame: _Frame) -> None:
        keyword = self._take()
        visibility = VISIBILITY_NAMES[keyword.text]
        following = self._on_same_line(0, keyword.line)

        if following is None:
            frame.visibility = visibility
            # A doc written above a lone ``private`` documents the next declaration.
            self._collector.carry(doc, keyword.line)
            return
        if following.is_punct(";"):
            frame.visibility = visibility
            return
        if following.is_keyword("def"):
            self._parse_def(doc, frame, visibility=visibility)
            return
        if following.kind is TokenKind.IDENTIFIER and following.text in ATTRIBUTE_MODES:
            self._parse_attributes(doc, frame, visibility=visibility)
            return

        names = set(_symbol_names(self._consume_statement()))
        assert frame.scope is not None
        for decl in frame.scope.declarations:
            if isinstance(decl, (MethodDecl, AttributeDecl)) and decl.name in names:
                decl.visibility = visibility

    def _parse_constant(self, doc: CommentBlock | None, frame: _Frame) -> None:
        name = self._take()
        self._take()
        rest = self._consume_statement()
        value: list[Token] = []
        for token in rest:
            if token.is_keyword("do"):
                break
            value.append(token)
        assert frame.scope is not None
        frame.scope.declarations.append(
            ConstantDecl(
                name=name.text,
                line=name.line,
                doc=doc,
                end_line=value[-1].end_line if value else name.line,
                raw_value_text=render_tokens(value),
            )
        )


__all__ = ["ATTRIBUTE_MODES", "INITIALIZER_NAME", "parse", "render_tokens"]
