from __future__ import annotations

import textwrap

from parse.ruby_lexer import tokenize
from parse.ruby_parser import parse, render_tokens
from symbols.models.scope import (
    AttributeDecl,
    ClassDecl,
    ConstantDecl,
    MethodDecl,
    ModuleDecl,
    ScopeKind,
    ScopeNode,
)


def _parse(source: str) -> ScopeNode:
    return parse(tokenize(textwrap.dedent(source)))


def test_scope_tree_mirrors_nesting() -> None:
    root = _parse(
        """
        module MyModule
          PI = 3.142
          class Foo
            attr_reader :name
            def initialize(name); end
          end
        end
        """
    )

    assert root.kind is ScopeKind.TOP_LEVEL
    assert [(c.kind, c.name) for c in root.children] == [(ScopeKind.MODULE, "MyModule")]
    module = root.children[0]
    assert [(c.kind, c.name) for c in module.children] == [(ScopeKind.CLASS, "Foo")]

    module_decl = root.declarations[0]
    assert isinstance(module_decl, ModuleDecl)
    assert module_decl.scope is module

    pi, foo = module.declarations
    assert isinstance(pi, ConstantDecl)
    assert pi.raw_value_text == "3.142"
    assert isinstance(foo, ClassDecl)

    name, init = module.children[0].declarations
    assert isinstance(name, AttributeDecl)
    assert name.mode == "reader"
    assert isinstance(init, MethodDecl)
    assert init.is_initializer is True


def test_reopened_scope_reuses_node() -> None:
    root = _parse(
        """
        class A
          def one; end
        end
        class A
          def two; end
        end
        module A
        end
        """
    )

    assert [(c.kind, c.name) for c in root.children] == [
        (ScopeKind.CLASS, "A"),
        (ScopeKind.MODULE, "A"),
    ]
    assert [d.name for d in root.children[0].declarations] == ["one", "two"]
    assert len(root.declarations) == 2


def test_end_lines_track_matching_end() -> None:
    root = _parse(
        """
        class A
          def one
            if ready?
              go
            end
          end
        end
        """
    )

    class_decl = root.declarations[0]
    method = root.children[0].declarations[0]
    assert (class_decl.line, class_decl.end_line) == (2, 8)
    assert (method.line, method.end_line) == (3, 7)


def test_loop_do_is_not_a_second_block() -> None:
    root = _parse(
        """
        class A
          def run
            while busy? do
              step
            end
            for i in list do
              step
            end
          end
          def after; end
        end
        """
    )

    assert [d.name for d in root.children[0].declarations] == ["run", "after"]
    assert root.declarations[0].end_line == 12


def test_modifier_conditionals_do_not_open_blocks() -> None:
    root = _parse(
        """
        class A
          def run
            return if done?
            retry unless ok
            x = 1 while false
          end
          def after; end
        end
        """
    )

    assert [d.name for d in root.children[0].declarations] == ["run", "after"]


def test_decorated_def_is_declared() -> None:
    root = _parse(
        """
        class A
          memoize def cached; end
          private_class_method def self.factory; end
        end
        """
    )

    cached, factory = root.children[0].declarations
    assert isinstance(cached, MethodDecl)
    assert cached.visibility == "public"
    assert isinstance(factory, MethodDecl)
    assert factory.singleton is True
    assert factory.visibility == "private"


def test_pragma_patterns_are_honoured() -> None:
    root = parse(
        tokenize("# :nodoc:\n# Real\nclass A\nend\n"),
        pragma_patterns=[r":nodoc:"],
    )

    doc = root.declarations[0].doc
    assert doc is not None
    assert doc.text() == "Real"


def test_render_tokens_preserves_spacing() -> None:
    tokens = [t for t in tokenize("[1,  2,\n  3]") if t.text not in ("\n", "")]

    assert render_tokens(tokens) == "[1,  2,\n  3]"
