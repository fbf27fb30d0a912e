"""Model namespace for tokens, parse scopes and symbol records."""

from symbols.models.scope import (
    AttributeDecl,
    ClassDecl,
    CommentBlock,
    ConstantDecl,
    Declaration,
    MethodDecl,
    ModuleDecl,
    ScopeDecl,
    ScopeKind,
    ScopeNode,
)
from symbols.models.symbols import Symbol, SymbolKind
from symbols.models.tokens import Token, TokenKind

__all__ = [
    "AttributeDecl",
    "ClassDecl",
    "CommentBlock",
    "ConstantDecl",
    "Declaration",
    "MethodDecl",
    "ModuleDecl",
    "ScopeDecl",
    "ScopeKind",
    "ScopeNode",
    "Symbol",
    "SymbolKind",
    "Token",
    "TokenKind",
]
