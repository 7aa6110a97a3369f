"""
Ordered text rewrite rules for generated Kotlin.

The upstream generator was adapted from a Java backend and still leaks
Java-flavoured fragments into its Kotlin output. Each rule below targets one
such fragment. Rules are plain ``str -> str`` functions and run in the order
given by ``build_rules``; later rules rely on the output of earlier ones
(``void_to_fun`` runs before ``strip_modifiers`` so that
``public static void f()`` ends up as ``fun f()``).

Every rule is:
- Text-level (no parse tree, only the helpers in ``scanning``)
- Total on generator output
- Idempotent (running twice produces the same output)
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from ktforge.repair.scanning import (
    find_closing,
    leading_identifier,
    parse_type,
    skip_literal,
    split_top_level,
)

RUNTIME_NAMESPACE = "dafny"

# Words that can never be a parameter type or name, nor a cast operand
RESERVED_WORDS = frozenset({
    "as", "break", "case", "catch", "class", "continue", "do", "else",
    "fun", "for", "if", "in", "instanceof", "is", "new", "object", "return",
    "super", "switch", "throw", "try", "val", "var", "when", "while",
})

# Kotlin infix functions; never the operand of a cast
INFIX_WORDS = frozenset({
    "and", "or", "xor", "shl", "shr", "ushr", "until", "downTo", "step", "to",
})

# A parenthesized group after one of these is a condition, not a cast
CONTROL_KEYWORDS = frozenset({
    "if", "while", "for", "switch", "catch", "synchronized", "when",
})


@dataclass(frozen=True)
class RewriteRule:
    """A named, pure text transformation with a fixed pipeline position."""

    name: str
    purpose: str
    apply: Callable[[str], str]

    def __call__(self, text: str) -> str:
        return self.apply(text)


# =========================================================================
# Rule 1: Statement terminators
# =========================================================================

_CALL_TERMINATOR = re.compile(r"\)[ \t]*;([ \t]*\r?)$", re.MULTILINE)
_DECLARATION_TERMINATOR = re.compile(
    r"^([ \t]*(?:package|import)[ \t]+(?:static[ \t]+)?[\w.*]+)[ \t]*;",
    re.MULTILINE,
)


def strip_call_terminators(text: str) -> str:
    """Drop ``;`` after a closing call parenthesis at end of line.

    The terminator of ``package`` and ``import`` declarations goes too.
    """
    text = _CALL_TERMINATOR.sub(r")\1", text)
    return _DECLARATION_TERMINATOR.sub(r"\1", text)


# =========================================================================
# Rule 2: void methods
# =========================================================================

_VOID_SIGNATURE = re.compile(r"\bvoid\s+(\w+)\s*\(")


def void_to_fun(text: str) -> str:
    return _VOID_SIGNATURE.sub(r"fun \1(", text)


# =========================================================================
# Rule 3: Wildcard generics
# =========================================================================

_BOUNDED_WILDCARD = re.compile(r"([<,][ \t]*)\?[ \t]*(?::|extends\b|super\b)[ \t]*")
_UNBOUNDED_WILDCARD = re.compile(r"([<,][ \t]*)\?(?=[ \t]*[,>])")


def wildcard_generics(text: str) -> str:
    """``<? : T>`` and ``<? extends T>`` become ``<T>``; ``<?>`` becomes ``<*>``."""
    text = _BOUNDED_WILDCARD.sub(r"\1", text)
    return _UNBOUNDED_WILDCARD.sub(r"\1*", text)


# =========================================================================
# Rule 4: Parameter declarations
# =========================================================================

_PARAM_MODIFIERS = re.compile(r"(?:final\s+)+")
_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
_GROUP_START = re.compile(r"[(\"'/]")


def _kotlin_array_type(type_text: str) -> str:
    while type_text.endswith("[]"):
        type_text = f"Array<{type_text[:-2]}>"
    return type_text


def _invert_segment(segment: str) -> str:
    body = segment.strip()
    if not body:
        return segment
    lead = segment[: len(segment) - len(segment.lstrip())]
    trail = segment[len(segment.rstrip()):]

    modifiers = _PARAM_MODIFIERS.match(body)
    if modifiers:
        body = body[modifiers.end():]

    end = parse_type(body)
    if end <= 0:
        return segment
    type_text, rest = body[:end], body[end:]

    vararg = rest.startswith("...")
    if vararg:
        rest = rest[3:]
    elif not rest[:1].isspace():
        return segment

    name = rest.strip()
    if not _IDENTIFIER.fullmatch(name):
        return segment
    if name in RESERVED_WORDS or leading_identifier(type_text) in RESERVED_WORDS:
        return segment

    prefix = "vararg " if vararg else ""
    return f"{lead}{prefix}{name}: {_kotlin_array_type(type_text)}{trail}"


def invert_parameters(text: str) -> str:
    """Rewrite ``Type name`` to ``name: Type`` inside parenthesized lists.

    Every parenthesized group is visited, innermost groups first. Each
    top-level comma-separated segment is inverted on its own when it is
    exactly a type followed by an identifier; anything else is left as is.
    Types may nest generic arguments to any depth.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        match = _GROUP_START.search(text, i)
        if not match:
            out.append(text[i:])
            break
        start = match.start()
        out.append(text[i:start])
        nxt = skip_literal(text, start)
        if nxt != start:
            out.append(text[start:nxt])
            i = nxt
            continue
        if text[start] != "(":
            out.append(text[start])
            i = start + 1
            continue
        close = find_closing(text, start)
        if close < 0:
            out.append(text[start:])
            break
        inner = invert_parameters(text[start + 1:close])
        segments = split_top_level(inner)
        out.append("(" + ",".join(_invert_segment(s) for s in segments) + ")")
        i = close + 1
    return "".join(out)


# =========================================================================
# Rule 5: Modifiers
# =========================================================================

_MODIFIERS = re.compile(r"\b(?:public|static|final)\s+")


def strip_modifiers(text: str) -> str:
    return _MODIFIERS.sub("", text)


# =========================================================================
# Rule 6: Object construction
# =========================================================================

_NEW_KEYWORD = re.compile(r"\bnew\s+(?=[A-Za-z_$])")


def elide_new(text: str) -> str:
    return _NEW_KEYWORD.sub("", text)


# =========================================================================
# Rule 7: Standard library names
# =========================================================================

QUALIFIED_NAMES = {
    "java.lang.String": "String",
    "java.lang.Object": "Any",
    "java.lang.Throwable": "Throwable",
}

_QUALIFIED_NAME = re.compile(
    r"(?<![\w.])(" + "|".join(re.escape(k) for k in QUALIFIED_NAMES) + r")\b"
)


def map_qualified_names(text: str) -> str:
    return _QUALIFIED_NAME.sub(lambda m: QUALIFIED_NAMES[m.group(1)], text)


# =========================================================================
# Rule 8: Console output
# =========================================================================

CONSOLE_CALLS = {
    "System.out.println(": "println(",
    "System.out.print(": "print(",
}


def console_output(text: str) -> str:
    for java_call, kotlin_call in CONSOLE_CALLS.items():
        text = text.replace(java_call, kotlin_call)
    return text


# =========================================================================
# Rule 9: Casts
# =========================================================================

# Casts to these types add nothing once the value reaches Kotlin
REDUNDANT_CASTS = frozenset({"String", "Any"})

_CAST_HEAD = re.compile(r"\([ \t]*([A-Za-z_$][\w$.]*(?:<[^;(){}\n]*>)?\??(?:\[\])*)[ \t]*\)[ \t]*")


def _parse_operand(text: str, i: int) -> int:
    """End of an identifier chain with call/index suffixes, or -1."""
    match = _IDENTIFIER.match(text, i)
    if not match or match.group(0) in RESERVED_WORDS | INFIX_WORDS:
        return -1
    i = match.end()
    while i < len(text):
        c = text[i]
        if c in "([":
            close = find_closing(text, i)
            if close < 0:
                return -1
            i = close + 1
        elif c == "." and _IDENTIFIER.match(text, i + 1):
            i = _IDENTIFIER.match(text, i + 1).end()
        else:
            break
    return i


def _is_cast_position(text: str, start: int) -> bool:
    if start > 0 and (text[start - 1].isalnum() or text[start - 1] in "_$)]>?"):
        return False
    before = text[:start].rstrip()
    word = re.search(r"(\w+)$", before)
    return not (word and word.group(1) in CONTROL_KEYWORDS)


def invert_casts(text: str) -> str:
    """Rewrite prefix ``(Type) value`` casts to ``(value as Type)``.

    Casts to ``String`` or ``Any`` are dropped, leaving the bare value.
    """
    out: list[str] = []
    pos = 0
    for match in _CAST_HEAD.finditer(text):
        start = match.start()
        if start < pos:
            continue
        type_text = match.group(1)
        if parse_type(type_text) != len(type_text):
            continue
        simple_name = type_text.split("<")[0].split(".")[-1]
        if not simple_name[:1].isupper() or not _is_cast_position(text, start):
            continue
        operand_end = _parse_operand(text, match.end())
        if operand_end < 0:
            continue
        operand = text[match.end():operand_end]
        out.append(text[pos:start])
        if type_text.rstrip("?") in REDUNDANT_CASTS:
            out.append(operand)
        else:
            out.append(f"({operand} as {type_text})")
        pos = operand_end
    out.append(text[pos:])
    return "".join(out)


# =========================================================================
# Rule 10: Return types
# =========================================================================

# Canonical return types of the Any members generated classes override
KNOWN_OVERRIDES = {
    "toString": "String",
    "hashCode": "Int",
    "equals": "Boolean",
}

_DOUBLED_RETURN_TYPE = re.compile(
    r"(\)[ \t]*:[ \t]*)([\w.]+(?:<[^(){}\n]*>)?\??)[ \t]*:[ \t]*\2(?![\w.<?])"
)
_OVERRIDE_SIGNATURE = re.compile(
    r"(override\s+fun\s+(" + "|".join(KNOWN_OVERRIDES) + r")\s*\([^()]*\))(?!\s*:)"
)


def return_types(text: str) -> str:
    text = _DOUBLED_RETURN_TYPE.sub(r"\1\2", text)
    return _OVERRIDE_SIGNATURE.sub(
        lambda m: f"{m.group(1)}: {KNOWN_OVERRIDES[m.group(2)]}", text
    )


# =========================================================================
# Rule 11: Missing bodies
# =========================================================================

_FUN_SIGNATURE = re.compile(
    r"^(?P<mods>[ \t]*(?:[a-z]+[ \t]+)*)fun[ \t]+(?:<[^>\n]*>[ \t]*)?[\w.`$]+[ \t]*\("
)
_BODYLESS_MODIFIERS = frozenset({"abstract", "external", "expect"})


def empty_bodies(text: str) -> str:
    """Give a body to ``fun`` signatures that have none.

    A ``{`` opening the body on the next line is joined onto the signature;
    otherwise an empty ``{}`` body is appended. Only signatures without a
    return type whose parameter list closes on the same line qualify.
    """
    lines = text.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i]
        match = _FUN_SIGNATURE.match(line)
        if not match or _BODYLESS_MODIFIERS & set(match.group("mods").split()):
            i += 1
            continue
        close = find_closing(line, match.end() - 1)
        if close < 0 or line[close + 1:].strip():
            i += 1
            continue
        eol = "\r" if line.endswith("\r") else ""
        signature = line[: close + 1]
        following = lines[i + 1] if i + 1 < len(lines) else ""
        if following.lstrip().startswith("{"):
            lines[i] = f"{signature} {{{eol}"
            remainder = following.lstrip()[1:]
            if remainder.strip():
                indent = following[: len(following) - len(following.lstrip())]
                lines[i + 1] = indent + remainder.lstrip()
            else:
                del lines[i + 1]
        else:
            lines[i] = f"{signature} {{}}{eol}"
        i += 1
    return "\n".join(lines)


# =========================================================================
# Rule 12: Growable lists
# =========================================================================

_ARRAY_LIST = re.compile(r"(?<![\w.])(?:java\.util\.)?ArrayList\b")


def mutable_lists(text: str) -> str:
    """``ArrayList()`` becomes ``mutableListOf()``; ``ArrayList<T>`` becomes ``MutableList<T>``."""
    out: list[str] = []
    pos = 0
    for match in _ARRAY_LIST.finditer(text):
        if match.start() < pos:
            continue
        end = match.end()
        if text.startswith("()", end):
            replacement, end = "mutableListOf()", end + 2
        elif text.startswith("<", end):
            type_end = parse_type(text, match.start())
            if type_end < 0:
                continue
            arguments = text[end:type_end]
            if text.startswith("()", type_end):
                replacement, end = f"mutableListOf{arguments}()", type_end + 2
            elif text.startswith("(", type_end):
                continue
            else:
                replacement, end = f"MutableList{arguments}", type_end
        else:
            continue
        out.append(text[pos:match.start()])
        out.append(replacement)
        pos = end
    out.append(text[pos:])
    return "".join(out)


# =========================================================================
# Rule 13: Brace terminators
# =========================================================================

_BRACE_TERMINATOR = re.compile(r"\}[ \t]*;")


def brace_terminators(text: str) -> str:
    return _BRACE_TERMINATOR.sub("}", text)


# =========================================================================
# Rule 14: Lambdas
# =========================================================================

_LAMBDA_HEAD = re.compile(
    r"\([ \t]*((?:[A-Za-z_$][\w$]*[ \t]*,[ \t]*)*[A-Za-z_$][\w$]*)?[ \t]*\)\s*->\s*\{"
)
_LAMBDA_TAIL = re.compile(r"\}[ \t]*\)[ \t]*;")


def _opens_lambda(text: str, start: int, has_params: bool) -> bool:
    """Whether the group at ``start`` can open a lambda literal.

    A group directly after a name or closing bracket is a call, as in
    ``isEmpty(xs) -> {`` inside a ``when``. Parameter lists additionally
    need an argument or assignment position.
    """
    if start > 0 and (text[start - 1].isalnum() or text[start - 1] in "_$)]>"):
        return False
    if not has_params:
        return True
    before = text[:start].rstrip()
    return before.endswith(("(", ",", "=")) or re.search(r"\breturn$", before) is not None


def _lambda_head(match: re.Match) -> str:
    params = match.group(1)
    if not _opens_lambda(match.string, match.start(), bool(params)):
        return match.group(0)
    if not params:
        return "{"
    names = ", ".join(p.strip() for p in params.split(","))
    return f"{{ {names} ->"


def invert_lambdas(text: str) -> str:
    """``(a, b) -> { ... });`` becomes ``{ a, b -> ... })``."""
    text = _LAMBDA_HEAD.sub(_lambda_head, text)
    return _LAMBDA_TAIL.sub("})", text)


# =========================================================================
# Rule 15: Runtime import
# =========================================================================

_PACKAGE_LINE = re.compile(r"^package[ \t]+[^\n]*(?:\n|$)", re.MULTILINE)


def make_runtime_import(namespace: str = RUNTIME_NAMESPACE) -> Callable[[str], str]:
    """Build the rule inserting ``import <namespace>.*`` after the package line."""
    reference = re.compile(rf"(?<![\w.]){re.escape(namespace)}\.")
    existing = re.compile(rf"^[ \t]*import[ \t]+{re.escape(namespace)}\.", re.MULTILINE)

    def runtime_import(text: str) -> str:
        if not reference.search(text) or existing.search(text):
            return text
        package = _PACKAGE_LINE.search(text)
        if not package:
            return text
        head = package.group(0)
        if not head.endswith("\n"):
            head += "\n"
        return text[: package.start()] + head + f"import {namespace}.*\n\n" + text[package.end():]

    return runtime_import


# =========================================================================
# Rule table
# =========================================================================


def build_rules(
    runtime_namespace: str = RUNTIME_NAMESPACE,
    disabled: frozenset[str] | set[str] = frozenset(),
) -> list[RewriteRule]:
    """Return the rules in their required order, minus any disabled by name."""
    rules = [
        RewriteRule("strip_call_terminators", "drop ';' after a call closing a line", strip_call_terminators),
        RewriteRule("void_to_fun", "void methods become fun declarations", void_to_fun),
        RewriteRule("wildcard_generics", "bounded wildcards become plain type arguments", wildcard_generics),
        RewriteRule("invert_parameters", "'Type name' parameters become 'name: Type'", invert_parameters),
        RewriteRule("strip_modifiers", "drop public/static/final", strip_modifiers),
        RewriteRule("elide_new", "drop 'new' before constructor calls", elide_new),
        RewriteRule("map_qualified_names", "java.lang names become Kotlin names", map_qualified_names),
        RewriteRule("console_output", "System.out calls become print/println", console_output),
        RewriteRule("invert_casts", "prefix casts become 'as' casts", invert_casts),
        RewriteRule("return_types", "fix doubled or missing return types", return_types),
        RewriteRule("empty_bodies", "give bodiless signatures an empty body", empty_bodies),
        RewriteRule("mutable_lists", "ArrayList becomes MutableList/mutableListOf", mutable_lists),
        RewriteRule("brace_terminators", "'};' becomes '}'", brace_terminators),
        RewriteRule("invert_lambdas", "Java lambdas become Kotlin lambdas", invert_lambdas),
        RewriteRule("runtime_import", f"import {runtime_namespace}.* when referenced", make_runtime_import(runtime_namespace)),
    ]
    return [rule for rule in rules if rule.name not in disabled]


DEFAULT_RULES = build_rules()
