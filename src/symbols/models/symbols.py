"""Symbol models for extracted documentation entities.

This module contains the final, immutable record emitted for every
documentable declaration (modules, classes, constants, attributes, methods).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from symbols.models.scope import AttributeMode, DeclarationKind, Visibility

# Schema version constant
SCHEMA_VERSION = 1

SymbolKind = DeclarationKind


class Symbol(BaseModel):
    """A documentable entity extracted from a guest-language source file."""

    model_config = ConfigDict(frozen=True)

    schema_version: int = Field(default=SCHEMA_VERSION)
    path: tuple[str, ...] = Field(
        description="Enclosing module/class names followed by the symbol's own name"
    )
    kind: SymbolKind
    name: str
    qualified_name: str
    doc: str | None = None
    source_line: int
    start_line: int = Field(description="First line of the doc block, or source_line")
    end_line: int | None = Field(
        default=None, description="Last line of the declaration (None if unclosed)"
    )
    anchor: str
    value: str | None = Field(
        default=None, description="Raw constant value text (constants only)"
    )
    mode: AttributeMode | None = None
    is_initializer: bool = False
    singleton: bool = False
    visibility: Visibility | None = None
    superclass: str | None = None


__all__ = ["SCHEMA_VERSION", "AttributeMode", "Symbol", "SymbolKind", "Visibility"]
