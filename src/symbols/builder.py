"""Turn a parsed scope tree into ordered, anchored symbol records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from symbols.anchors import AnchorGenerator
from symbols.models.scope import (
    AttributeDecl,
    ClassDecl,
    ConstantDecl,
    MethodDecl,
    ScopeDecl,
)
from symbols.models.symbols import Symbol

if TYPE_CHECKING:
    from collections.abc import Iterator

    from symbols.models.scope import Declaration, ScopeNode


def qualified_name(path: tuple[str, ...], decl: Declaration) -> str:
    """Ruby-style display name: ``A::B``, ``A::B#meth``, ``A::B.smeth``."""
    *owner, own = path
    if not isinstance(decl, (MethodDecl, AttributeDecl)):
        return "::".join(path)
    if not owner:
        return own
    marker = "." if isinstance(decl, MethodDecl) and decl.singleton else "#"
    return "::".join(owner) + marker + own


def iter_declarations(
    scope: ScopeNode, prefix: tuple[str, ...] = ()
) -> Iterator[tuple[tuple[str, ...], Declaration]]:
    """Yield ``(path, declaration)`` pairs in pre-order.

    A module or class is yielded before its members. The walk keeps its own
    stack, so nesting depth is not bounded by the recursion limit.
    """
    stack: list[tuple[tuple[str, ...], Iterator[Declaration]]] = [
        (prefix, iter(scope.declarations))
    ]
    while stack:
        owner, members = stack[-1]
        decl = next(members, None)
        if decl is None:
            stack.pop()
            continue
        if isinstance(decl, ScopeDecl):
            path = (*owner, *decl.segments)
            yield path, decl
            if decl.scope is not None:
                stack.append((path, iter(decl.scope.declarations)))
        else:
            yield (*owner, decl.name), decl


def _to_symbol(path: tuple[str, ...], decl: Declaration, anchor: str) -> Symbol:
    fields: dict[str, object] = {}
    if isinstance(decl, ConstantDecl):
        fields["value"] = decl.raw_value_text
    elif isinstance(decl, AttributeDecl):
        fields["mode"] = decl.mode
        fields["visibility"] = decl.visibility
    elif isinstance(decl, MethodDecl):
        fields["is_initializer"] = decl.is_initializer
        fields["singleton"] = decl.singleton
        fields["visibility"] = decl.visibility
    elif isinstance(decl, ClassDecl):
        fields["superclass"] = decl.superclass

    return Symbol(
        path=path,
        kind=decl.kind,
        name=decl.name,
        qualified_name=qualified_name(path, decl),
        doc=decl.doc.text() if decl.doc is not None else None,
        source_line=decl.line,
        start_line=decl.start_line,
        end_line=decl.end_line,
        anchor=anchor,
        **fields,
    )


def build(root: ScopeNode, anchors: AnchorGenerator | None = None) -> list[Symbol]:
    """Build symbol records for every declaration under ``root``.

    Args:
        root: The ``TOP_LEVEL`` node returned by a language parser.
        anchors: Generator holding the collision table for this call. A fresh
            one with the default separator is used when omitted.

    Returns:
        Symbols in pre-order, parents before their members.
    """
    if anchors is None:
        anchors = AnchorGenerator()
    return [
        _to_symbol(path, decl, anchors.anchor_for(path, decl.kind))
        for path, decl in iter_declarations(root)
    ]


__all__ = ["build", "iter_declarations", "qualified_name"]
