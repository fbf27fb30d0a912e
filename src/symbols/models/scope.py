"""Intermediate parse models: comment blocks, declarations and scopes.

These objects live only for the duration of one extraction call. The
language parsers build them; the symbol builder turns them into immutable
:class:`~symbols.models.symbols.Symbol` records.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal

if TYPE_CHECKING:
    from symbols.models.tokens import Token

DeclarationKind = Literal["module", "class", "constant", "attribute", "method"]
AttributeMode = Literal["reader", "writer", "accessor"]
Visibility = Literal["public", "protected", "private"]


@dataclass
class CommentBlock:
    """Consecutive own-line comments directly above a declaration.

    ``lines`` holds the comment text with the language's markers removed;
    ``tokens`` keeps the original comment tokens.
    """

    tokens: list[Token] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    @property
    def start_line(self) -> int:
        return self.tokens[0].line

    @property
    def end_line(self) -> int:
        return self.tokens[-1].line

    def text(self) -> str | None:
        """Joined doc text with leading/trailing blank lines trimmed."""
        lines = [line.rstrip() for line in self.lines]
        while lines and not lines[0].strip():
            lines.pop(0)
        while lines and not lines[-1].strip():
            lines.pop()
        if not lines:
            return None
        return "\n".join(lines)


class ScopeKind(enum.Enum):
    TOP_LEVEL = "top_level"
    MODULE = "module"
    CLASS = "class"


@dataclass
class Declaration:
    """Base for every documentable construct found by a parser."""

    kind: ClassVar[DeclarationKind]

    name: str
    line: int
    doc: CommentBlock | None = None
    end_line: int | None = None

    @property
    def start_line(self) -> int:
        return self.doc.start_line if self.doc is not None else self.line


@dataclass
class ScopeDecl(Declaration):
    """A declaration that also opens a scope (module or class).

    ``namespace`` holds the leading segments of a compound name such as
    ``A::B`` (here ``("A",)``); ``scope`` is the node holding the members.
    """

    namespace: tuple[str, ...] = ()
    scope: ScopeNode | None = None

    @property
    def segments(self) -> tuple[str, ...]:
        return (*self.namespace, self.name)


@dataclass
class ModuleDecl(ScopeDecl):
    kind: ClassVar[DeclarationKind] = "module"


@dataclass
class ClassDecl(ScopeDecl):
    kind: ClassVar[DeclarationKind] = "class"

    superclass: str | None = None


@dataclass
class ConstantDecl(Declaration):
    kind: ClassVar[DeclarationKind] = "constant"

    raw_value_text: str = ""


@dataclass
class AttributeDecl(Declaration):
    kind: ClassVar[DeclarationKind] = "attribute"

    mode: AttributeMode = "reader"
    visibility: Visibility = "public"


@dataclass
class MethodDecl(Declaration):
    kind: ClassVar[DeclarationKind] = "method"

    is_initializer: bool = False
    singleton: bool = False
    visibility: Visibility = "public"


@dataclass
class ScopeNode:
    """A lexical scope; the tree is rooted at a ``TOP_LEVEL`` node."""

    kind: ScopeKind
    name: str = ""
    children: list[ScopeNode] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)

    def find_child(self, kind: ScopeKind, name: str) -> ScopeNode | None:
        for child in self.children:
            if child.kind is kind and child.name == name:
                return child
        return None

    def add_child(self, kind: ScopeKind, name: str) -> ScopeNode:
        node = ScopeNode(kind=kind, name=name)
        self.children.append(node)
        return node


__all__ = [
    "AttributeDecl",
    "AttributeMode",
    "ClassDecl",
    "CommentBlock",
    "ConstantDecl",
    "Declaration",
    "DeclarationKind",
    "MethodDecl",
    "ModuleDecl",
    "ScopeDecl",
    "ScopeKind",
    "ScopeNode",
    "Visibility",
]
