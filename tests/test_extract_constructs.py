from __future__ import annotations

import textwrap
from typing import Any

import pytest

from extract import ExtractConfig, UnsupportedLanguageError, extract
from parse.registry import LanguageTag
from symbols.models.symbols import Symbol


def _extract(source: str, **config: Any) -> list[Symbol]:
    return extract(
        textwrap.dedent(source),
        LanguageTag.RUBY,
        config=ExtractConfig(**config) if config else None,
    )


def _anchors(symbols: list[Symbol]) -> list[str]:
    return [s.anchor for s in symbols]


@pytest.mark.parametrize(
    "language",
    ["python", "", LanguageTag.RUST, LanguageTag.MARKDOWN, "RUBY"],
)
def test_unsupported_language_raises(language: str) -> None:
    with pytest.raises(UnsupportedLanguageError) as excinfo:
        extract("class A\nend\n", language)

    assert excinfo.value.language == getattr(language, "value", language)


def test_empty_source_yields_no_symbols() -> None:
    assert extract("", LanguageTag.RUBY) == []


def test_paths_follow_lexical_nesting() -> None:
    symbols = _extract(
        """
        module Outer
          module Inner
            class Leaf
              VALUE = 1
              def go; end
            end
          end
          class Sibling
          end
        end
        """
    )

    assert [s.path for s in symbols] == [
        ("Outer",),
        ("Outer", "Inner"),
        ("Outer", "Inner", "Leaf"),
        ("Outer", "Inner", "Leaf", "VALUE"),
        ("Outer", "Inner", "Leaf", "go"),
        ("Outer", "Sibling"),
    ]


def test_top_level_declarations_have_single_segment_paths() -> None:
    symbols = _extract(
        """
        VERSION = "1.0"

        def helper
        end
        """
    )

    assert [(s.kind, s.path, s.qualified_name) for s in symbols] == [
        ("constant", ("VERSION",), "VERSION"),
        ("method", ("helper",), "helper"),
    ]
    assert symbols[0].value == '"1.0"'


def test_comment_separated_by_blank_line_is_not_attached() -> None:
    symbols = _extract(
        """
        # Stale comment

        class Lonely
        end
        """
    )

    assert symbols[0].doc is None


def test_trailing_comment_is_not_documentation() -> None:
    symbols = _extract(
        """
        X = 1 # about X
        Y = 2
        """
    )

    assert [s.doc for s in symbols] == [None, None]


def test_comment_before_other_code_is_discarded() -> None:
    symbols = _extract(
        """
        class A
          # about the call
          configure!
          def bar; end
        end
        """
    )

    assert symbols[1].name == "bar"
    assert symbols[1].doc is None


def test_block_comment_documents_declaration() -> None:
    symbols = _extract(
        """
        =begin
        Block docs
        =end
        class A
        end
        """
    )

    assert symbols[0].doc == "Block docs"


def test_constant_value_is_captured_verbatim() -> None:
    symbols = _extract(
        """
        module M
          PI = 3.142
          SUM = 1 + 2 * 3
          Point = Struct.new(:x, :y) do
            def norm; end
          end
          QUERY = <<~SQL
            select * from t
            class Fake
          SQL
        end
        """
    )

    values = {s.name: s.value for s in symbols if s.kind == "constant"}
    assert values == {
        "PI": "3.142",
        "SUM": "1 + 2 * 3",
        "Point": "Struct.new(:x, :y)",
        "QUERY": "<<~SQL",
    }
    assert [s.name for s in symbols] == ["M", "PI", "SUM", "Point", "QUERY"]


def test_attribute_modes_and_multiple_names_broadcast_doc() -> None:
    symbols = _extract(
        """
        class Config
          # Shared doc
          attr_accessor :host, :port
          attr_writer :secret
          attr "legacy"
        end
        """
    )

    attrs = [(s.name, s.mode, s.doc) for s in symbols if s.kind == "attribute"]
    assert attrs == [
        ("host", "accessor", "Shared doc"),
        ("port", "accessor", "Shared doc"),
        ("secret", "writer", None),
        ("legacy", "reader", None),
    ]


def test_multiple_names_first_policy() -> None:
    symbols = _extract(
        """
        class Config
          # Shared doc
          attr_reader :host, :port
        end
        """,
        attribute_doc_policy="first",
    )

    assert [(s.name, s.doc) for s in symbols[1:]] == [
        ("host", "Shared doc"),
        ("port", None),
    ]


def test_method_name_forms() -> None:
    symbols = _extract(
        """
        class Money
          def name=(value); end
          def empty?; end
          def reset!; end
          def ==(other); end
          def [](index); end
          def []=(index, value); end
          def <=>(other); end
          def -@; end
          def /(other); end
          def to_s = "money"
          def cents() = 100
          def last; end
        end
        """
    )

    methods = [s for s in symbols if s.kind == "method"]
    assert [m.name for m in methods] == [
        "name=",
        "empty?",
        "reset!",
        "==",
        "[]",
        "[]=",
        "<=>",
        "-@",
        "/",
        "to_s",
        "cents",
        "last",
    ]
    anchors = {m.name: m.anchor for m in methods}
    assert anchors["=="] == "money/op-3d-3d"
    assert anchors["[]"] == "money/op-5b-5d"
    assert anchors["<=>"] == "money/op-3c-3d-3e"
    assert anchors["name="] == "money/name"
    assert anchors["empty?"] == "money/empty"
    assert len(set(anchors.values())) == len(anchors)


def test_endless_method_does_not_open_block() -> None:
    symbols = _extract(
        """
        class A
          def answer = 42
          def after; end
        end
        B = 1
        """
    )

    assert [s.path for s in symbols] == [
        ("A",),
        ("A", "answer"),
        ("A", "after"),
        ("B",),
    ]
    assert symbols[1].end_line == symbols[1].source_line


def test_singleton_methods() -> None:
    symbols = _extract(
        """
        class Factory
          def self.build; end
          class << self
            def create; end
          end
          def create; end
        end
        """
    )

    assert [(s.qualified_name, s.singleton, s.anchor) for s in symbols[1:]] == [
        ("Factory.build", True, "factory/build"),
        ("Factory.create", True, "factory/create"),
        ("Factory#create", False, "factory/create-method"),
    ]


def test_singleton_initialize_is_not_an_initializer() -> None:
    symbols = _extract(
        """
        class A
          def self.initialize; end
          def initialize; end
        end
        """
    )

    assert [s.is_initializer for s in symbols[1:]] == [False, True]


def test_visibility() -> None:
    symbols = _extract(
        """
        class Account
          def pub; end
          private
          def hidden; end
          public def shown; end
          protected attr_reader :balance
          def later; end
          private :pub
        end
        """
    )

    assert [(s.name, s.visibility) for s in symbols[1:]] == [
        ("pub", "private"),
        ("hidden", "private"),
        ("shown", "public"),
        ("balance", "protected"),
        ("later", "private"),
    ]


def test_exclude_private_keeps_anchors_stable() -> None:
    source = """
        class Account
          private
          def secret; end
          def secret; end
          public
          def secret!; end
        end
        """
    everything = _extract(source)
    public_only = _extract(source, include_private=False)

    assert [s.anchor for s in everything] == [
        "account",
        "account/secret",
        "account/secret-method",
        "account/secret-method-2",
    ]
    assert [s.anchor for s in public_only] == ["account", "account/secret-method-2"]


def test_superclass_and_compound_names() -> None:
    symbols = _extract(
        """
        module Api::V2
          class Users::Controller < Base::Controller
            def index; end
          end
        end
        """
    )

    assert [(s.path, s.qualified_name, s.anchor) for s in symbols] == [
        (("Api", "V2"), "Api::V2", "api/v2"),
        (
            ("Api", "V2", "Users", "Controller"),
            "Api::V2::Users::Controller",
            "api/v2/users/controller",
        ),
        (
            ("Api", "V2", "Users", "Controller", "index"),
            "Api::V2::Users::Controller#index",
            "api/v2/users/controller/index",
        ),
    ]
    assert symbols[0].name == "V2"
    assert symbols[1].name == "Controller"
    assert symbols[1].superclass == "Base::Controller"


def test_reopened_class_is_one_symbol() -> None:
    symbols = _extract(
        """
        class Widget
          def one; end
        end

        # Late docs
        class Widget
          def two; end
        end
        """
    )

    assert [s.anchor for s in symbols] == ["widget", "widget/one", "widget/two"]
    assert symbols[0].doc == "Late docs"


def test_class_and_constant_with_same_name_get_distinct_anchors() -> None:
    symbols = _extract(
        """
        module M
          Foo = 1
          class Foo
          end
        end
        """
    )

    assert [(s.kind, s.path, s.anchor) for s in symbols] == [
        ("module", ("M",), "m"),
        ("constant", ("M", "Foo"), "m/foo"),
        ("class", ("M", "Foo"), "m/foo-class"),
    ]


def test_anchor_separator_from_config() -> None:
    symbols = _extract(
        """
        module A
          class B
          end
        end
        """,
        anchor_separator="--",
    )

    assert _anchors(symbols) == ["a", "a--b"]


def test_declarations_inside_conditionals_belong_to_enclosing_scope() -> None:
    symbols = _extract(
        """
        class Compat
          if RUBY_VERSION > "3"
            def modern; end
          else
            def legacy; end
          end
          def after; end
        end
        """
    )

    assert [s.path for s in symbols] == [
        ("Compat",),
        ("Compat", "modern"),
        ("Compat", "legacy"),
        ("Compat", "after"),
    ]


def test_declarations_inside_blocks_and_methods_are_ignored() -> None:
    symbols = _extract(
        """
        class Dsl
          included do
            def hidden_in_block; end
          end

          def outer
            x = obj.class
            return x if x
          end

          def after; end
        end
        """
    )

    assert [s.name for s in symbols] == ["Dsl", "outer", "after"]


def test_unclosed_class_keeps_earlier_symbols() -> None:
    symbols = _extract(
        """
        module Outer
          # Docs
          class Open
            def one
            end
        """
    )

    assert [s.path for s in symbols] == [
        ("Outer",),
        ("Outer", "Open"),
        ("Outer", "Open", "one"),
    ]
    assert symbols[0].end_line is None
    assert symbols[1].end_line is None
    assert symbols[1].doc == "Docs"
    assert symbols[2].end_line == 6


def test_stray_end_is_ignored() -> None:
    symbols = _extract(
        """
        end
        end
        class After
          def ok; end
        end
        """
    )

    assert [s.path for s in symbols] == [("After",), ("After", "ok")]


def test_unbalanced_brackets_recover_at_next_declaration() -> None:
    symbols = _extract(
        """
        class Broken
          ) ] } call((
          def ok
          end
        end
        class Next
        end
        """
    )

    assert [s.path for s in symbols] == [
        ("Broken",),
        ("Broken", "ok"),
        ("Next",),
    ]


def test_brace_block_methods_stay_inside_the_block() -> None:
    symbols = _extract(
        """
        class A
          X = Struct.new(:a) {
            def inner; end
          }
          def outer; end
        end
        """
    )

    assert [s.path for s in symbols] == [("A",), ("A", "X"), ("A", "outer")]
    assert symbols[1].value == "Struct.new(:a) {\n    def inner; end\n  }"
    assert symbols[1].end_line == 5
    assert symbols[0].end_line == 7


def test_doc_above_lone_visibility_keyword_documents_next_method() -> None:
    symbols = _extract(
        """
        class Account
          # Recomputes the cached balance.
          private
          def recalc; end

          # Detached by the blank line below.
          protected

          def audit; end
          private
          # Own doc.
          def purge; end
        end
        """
    )

    assert [(s.name, s.doc, s.visibility) for s in symbols[1:]] == [
        ("recalc", "Recomputes the cached balance.", "private"),
        ("audit", None, "protected"),
        ("purge", "Own doc.", "private"),
    ]


@pytest.mark.parametrize("closed", [False, True])
def test_deep_nesting_does_not_exhaust_recursion(closed: bool) -> None:
    depth = 1200
    source = "module A\n" * depth + ("end\n" * depth if closed else "")

    symbols = extract(source, "ruby")

    assert len(symbols) == depth
    assert symbols[-1].path == ("A",) * depth
    assert symbols[-1].anchor == "/".join(["a"] * depth)
    if closed:
        assert symbols[0].end_line == 2 * depth
        assert symbols[-1].end_line == depth + 1
    else:
        assert all(s.end_line is None for s in symbols)


def test_unterminated_string_keeps_prior_symbols() -> None:
    symbols = _extract(
        """
        class A
          def x
            "never closed
          end
        end
        """
    )

    assert [s.path for s in symbols] == [("A",), ("A", "x")]


def test_garbage_input_never_raises() -> None:
    source = "}}}{{{ end end class < << def def ( ] :: = \x00 %w( /re\n" * 5

    assert isinstance(extract(source, "ruby"), list)
