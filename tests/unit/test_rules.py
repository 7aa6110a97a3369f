"""
Tests for the rewrite rules, fixtures listed in pipeline order.

Every fixture is also checked for idempotence: a rule applied to its own
output must return that output unchanged.
"""

import textwrap

import pytest

from ktforge.repair.rules import (
    DEFAULT_RULES,
    brace_terminators,
    build_rules,
    console_output,
    elide_new,
    empty_bodies,
    invert_casts,
    invert_lambdas,
    invert_parameters,
    make_runtime_import,
    map_qualified_names,
    mutable_lists,
    return_types,
    strip_call_terminators,
    strip_modifiers,
    void_to_fun,
    wildcard_generics,
)
from ktforge.runtime import packaged_runtime_path

runtime_import = make_runtime_import("dafny")


FIXTURES = [
    # 1: terminators
    (strip_call_terminators, "foo(x);\n", "foo(x)\n"),
    (strip_call_terminators, "  a.b(c(d));  \n", "  a.b(c(d))  \n"),
    (strip_call_terminators, "package _System;\nimport java.util.List;\n", "package _System\nimport java.util.List\n"),
    (strip_call_terminators, "for (;;) { a(); b(); }\n", "for (;;) { a(); b(); }\n"),
    # 2: void
    (void_to_fun, "void foo(", "fun foo("),
    (void_to_fun, "public static void bar()", "public static fun bar()"),
    # 3: wildcards
    (wildcard_generics, "List<? : Int>", "List<Int>"),
    (wildcard_generics, "Map<String, ? extends Foo>", "Map<String, Foo>"),
    (wildcard_generics, "Class<?>", "Class<*>"),
    (wildcard_generics, "val y = a ?: b", "val y = a ?: b"),
    # 4: parameters
    (invert_parameters, "(pkg.Map<pkg.List<Int>,String> m)", "(m: pkg.Map<pkg.List<Int>,String>)"),
    (invert_parameters, "catch (Exception e) {", "catch (e: Exception) {"),
    (invert_parameters, "fun f(String a, int b)", "fun f(a: String, b: int)"),
    (invert_parameters, "fun main(String[] args)", "fun main(args: Array<String>)"),
    (invert_parameters, "fun join(String... parts)", "fun join(vararg parts: String)"),
    (invert_parameters, "fun f(final Foo x)", "fun f(x: Foo)"),
    (invert_parameters, "foo(bar(Int x), y)", "foo(bar(x: Int), y)"),
    (invert_parameters, "foo(a, b)", "foo(a, b)"),
    (invert_parameters, "if (a < b && c > d)", "if (a < b && c > d)"),
    (invert_parameters, 'println("(String s)")', 'println("(String s)")'),
    # 5: modifiers
    (strip_modifiers, "public static final int X = 1", "int X = 1"),
    (strip_modifiers, "val publicity = 1", "val publicity = 1"),
    # 6: new
    (elide_new, "val x = new Foo(1)", "val x = Foo(1)"),
    (elide_new, "renew(x)", "renew(x)"),
    # 7: qualified names
    (
        map_qualified_names,
        "java.lang.String s; java.lang.Object o; java.lang.Throwable t",
        "String s; Any o; Throwable t",
    ),
    (map_qualified_names, "myjava.lang.String", "myjava.lang.String"),
    # 8: console output
    (console_output, 'System.out.println("hi")', 'println("hi")'),
    (console_output, "System.out.print(x)", "print(x)"),
    # 9: casts
    (invert_casts, "val s = (String) x", "val s = x"),
    (invert_casts, "val n = (Foo) x", "val n = (x as Foo)"),
    (
        invert_casts,
        "(dafny.DafnySequence<T>) obj.get(0)",
        "(obj.get(0) as dafny.DafnySequence<T>)",
    ),
    (invert_casts, "if (Done) return", "if (Done) return"),
    (invert_casts, "foo(Bar) baz", "foo(Bar) baz"),
    (invert_casts, "val f: (Foo) -> Unit", "val f: (Foo) -> Unit"),
    (invert_casts, "(Flag) or x", "(Flag) or x"),
    # 10: return types
    (return_types, "fun foo(): String: String {", "fun foo(): String {"),
    (return_types, "fun xs(): List<Int>: List<Int> {", "fun xs(): List<Int> {"),
    (return_types, "override fun toString()", "override fun toString(): String"),
    (return_types, "override fun hashCode() = 1", "override fun hashCode(): Int = 1"),
    (return_types, "override fun equals(other: Any?): Boolean", "override fun equals(other: Any?): Boolean"),
    # 11: bodies
    (empty_bodies, "fun Main()\n", "fun Main() {}\n"),
    (empty_bodies, "fun Main(args: X)\n{\n  run()\n}\n", "fun Main(args: X) {\n  run()\n}\n"),
    (empty_bodies, "  fun f(g: () -> Unit)\n", "  fun f(g: () -> Unit) {}\n"),
    (empty_bodies, "abstract fun foo()\n", "abstract fun foo()\n"),
    (empty_bodies, "fun foo(): Int\n", "fun foo(): Int\n"),
    (empty_bodies, "fun foo() {\n}\n", "fun foo() {\n}\n"),
    # 12: lists
    (mutable_lists, "val xs = ArrayList()", "val xs = mutableListOf()"),
    (
        mutable_lists,
        "val xs: ArrayList<Int> = ArrayList<Int>()",
        "val xs: MutableList<Int> = mutableListOf<Int>()",
    ),
    (mutable_lists, "val xs = java.util.ArrayList()", "val xs = mutableListOf()"),
    (mutable_lists, "import java.util.ArrayList\n", "import java.util.ArrayList\n"),
    (mutable_lists, "ArrayList<Int>(xs)", "ArrayList<Int>(xs)"),
    # 13: brace terminators
    (brace_terminators, "class A {\n};\n", "class A {\n}\n"),
    # 14: lambdas
    (invert_lambdas, "run(() -> { go() })", "run({ go() })"),
    (invert_lambdas, "xs.forEach((a, b) -> { use(a, b) });", "xs.forEach({ a, b -> use(a, b) })"),
    (invert_lambdas, "val f = (x) -> { x }", "val f = { x -> x }"),
    (
        invert_lambdas,
        "when {\n    isEmpty(xs) -> {\n        go()\n    }\n}\n",
        "when {\n    isEmpty(xs) -> {\n        go()\n    }\n}\n",
    ),
    (
        invert_lambdas,
        "when {\n    (ready) -> {\n        go()\n    }\n}\n",
        "when {\n    (ready) -> {\n        go()\n    }\n}\n",
    ),
    (invert_lambdas, "when (x) {\n    f() -> { go() }\n}\n", "when (x) {\n    f() -> { go() }\n}\n"),
    # 15: runtime import
    (
        runtime_import,
        "package foo\n\nclass A { val x = dafny.Helpers }\n",
        "package foo\nimport dafny.*\n\n\nclass A { val x = dafny.Helpers }\n",
    ),
    (runtime_import, "class A { val x = dafny.Helpers }\n", "class A { val x = dafny.Helpers }\n"),
    (
        runtime_import,
        "package foo\nimport dafny.Helpers\nval x = dafny.Helpers\n",
        "package foo\nimport dafny.Helpers\nval x = dafny.Helpers\n",
    ),
    (runtime_import, "package dafny\n\nclass A\n", "package dafny\n\nclass A\n"),
]


def _fixture_id(fixture) -> str:
    rule, source, _ = fixture
    return f"{rule.__name__}:{source[:30]!r}"


@pytest.mark.parametrize("rule,source,expected", FIXTURES, ids=[_fixture_id(f) for f in FIXTURES])
def test_rule_fixture(rule, source, expected):
    assert rule(source) == expected


@pytest.mark.parametrize("rule,source,expected", FIXTURES, ids=[_fixture_id(f) for f in FIXTURES])
def test_rule_idempotent(rule, source, expected):
    once = rule(source)
    assert rule(once) == once


# =========================================================================
# Parameter inversion: nesting depth
# =========================================================================


class TestNestedGenericParameters:
    """Bracket balance must survive deeply nested generic parameter types."""

    def test_three_levels(self):
        source = "fun f(a.B<c.D<e.F<G>>, H> x, Int y)"
        assert invert_parameters(source) == "fun f(x: a.B<c.D<e.F<G>>, H>, y: Int)"

    def test_five_levels_with_commas(self):
        nested = "M<K, L<A<B<C<D, E>>>, Z>>"
        result = invert_parameters(f"fun f({nested} value)")
        assert result == f"fun f(value: {nested})"
        assert result.count("<") == result.count(">")

    def test_wildcards_inside_nested_generics(self):
        source = "(dafny.DafnySequence<? : dafny.DafnySequence<? : dafny.CodePoint>> args)"
        assert invert_parameters(source) == (
            "(args: dafny.DafnySequence<? : dafny.DafnySequence<? : dafny.CodePoint>>)"
        )

    def test_unbalanced_generic_left_alone(self):
        source = "fun f(Map<K, V x)"
        assert invert_parameters(source) == source

    def test_unbalanced_parenthesis_left_alone(self):
        source = "fun f(String a"
        assert invert_parameters(source) == source


# =========================================================================
# Idempotence over whole generated files
# =========================================================================

DEFAULT_CLASS = textwrap.dedent("""\
    package _System;

    public class __default {
      public __default() {
      }
      public static void Main(dafny.DafnySequence<? : dafny.DafnySequence<? : dafny.CodePoint>> args)
      {
        val xs = new ArrayList<Int>();
        System.out.println((String) name);
        Helpers.withHaltHandling(() -> {
          run(xs);
        });
      }
    }
""")

BOX_CLASS = textwrap.dedent("""\
    package Demo;

    public class Box<T> {
      public java.lang.Object value;
      public Box(java.lang.Object value) {
        this.value = value;
      }
      override fun toString()
      {
        return (String) value.toString();
      }
      public void fill(java.util.ArrayList<T> items, T... extra)
      {
        ArrayList<T> copy = new ArrayList<T>();
        items.forEach((item) -> {
          copy.add((T) item);
        });
      };
    }
""")

MAIN_FILE = textwrap.dedent("""\
    // Dafny program compiled into Kotlin
    import _System.*

    fun main(args: Array<String>) {
      Helpers.withHaltHandling(() -> {
        __default.Main(Helpers.UnicodeFromMainArguments(args));
      });
    }
""")

CORPUS = {
    "default_class": DEFAULT_CLASS,
    "box_class": BOX_CLASS,
    "main_file": MAIN_FILE,
    "runtime": packaged_runtime_path().read_text(encoding="utf-8"),
}


def _pipeline_inputs(text: str) -> dict[str, str]:
    """The text each rule receives when the whole pipeline runs over ``text``."""
    inputs = {}
    for rule in DEFAULT_RULES:
        inputs[rule.name] = text
        text = rule(text)
    return inputs


@pytest.mark.parametrize("document", sorted(CORPUS))
@pytest.mark.parametrize("rule", DEFAULT_RULES, ids=[r.name for r in DEFAULT_RULES])
class TestIdempotenceOverCorpus:
    """Every rule, applied twice, equals the rule applied once."""

    def test_on_raw_file(self, rule, document):
        once = rule(CORPUS[document])
        assert rule(once) == once

    def test_at_pipeline_position(self, rule, document):
        once = rule(_pipeline_inputs(CORPUS[document])[rule.name])
        assert rule(once) == once


# =========================================================================
# Rule table
# =========================================================================


class TestRuleTable:
    def test_order(self):
        assert [r.name for r in DEFAULT_RULES] == [
            "strip_call_terminators",
            "void_to_fun",
            "wildcard_generics",
            "invert_parameters",
            "strip_modifiers",
            "elide_new",
            "map_qualified_names",
            "console_output",
            "invert_casts",
            "return_types",
            "empty_bodies",
            "mutable_lists",
            "brace_terminators",
            "invert_lambdas",
            "runtime_import",
        ]

    def test_disable_by_name(self):
        rules = build_rules(disabled={"elide_new", "invert_casts"})
        names = [r.name for r in rules]
        assert "elide_new" not in names
        assert "invert_casts" not in names
        assert len(names) == 13

    def test_custom_runtime_namespace(self):
        rule = build_rules(runtime_namespace="rt")[-1]
        assert rule("package p\nval x = rt.Foo\n") == "package p\nimport rt.*\n\nval x = rt.Foo\n"
