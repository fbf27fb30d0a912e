"""Symbol model building, anchoring, queries and serialization."""

from symbols.anchors import AnchorGenerator, slugify_segment
from symbols.builder import build
from symbols.models.symbols import SCHEMA_VERSION, Symbol
from symbols.query import fetch_lines, find_symbol, parse_query
from symbols.utils import dump_jsonl, load_jsonl, write_jsonl

__all__ = [
    "SCHEMA_VERSION",
    "AnchorGenerator",
    "Symbol",
    "build",
    "dump_jsonl",
    "fetch_lines",
    "find_symbol",
    "load_jsonl",
    "parse_query",
    "slugify_segment",
    "write_jsonl",
]
