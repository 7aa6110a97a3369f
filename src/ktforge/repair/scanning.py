"""
Bracket-aware text scanning helpers.

The repair rules work on raw generated text, never on a parse tree. These
helpers give them just enough structure to do that safely: skipping string
and char literals and comments, matching brackets, splitting argument lists
at top-level commas, and recognizing type expressions with arbitrarily
nested generic arguments.
"""

from __future__ import annotations

import re

_PAIRS = {"(": ")", "[": "]", "{": "}"}

_QUALIFIED_NAME = re.compile(r"[A-Za-z_$][\w$]*(?:\.[A-Za-z_$][\w$]*)*")
_WILDCARD_BOUND = re.compile(r"(?::|extends\b|super\b)")
_VARIANCE = re.compile(r"(?:out|in)\s+(?=[A-Za-z_$])")


def skip_literal(text: str, i: int) -> int:
    """Return the index just past a literal or comment starting at ``i``.

    Handles double-quoted and triple-quoted strings, char literals, line
    comments and block comments. Returns ``i`` unchanged when nothing of the
    sort starts there.
    """
    ch = text[i]
    if ch == '"':
        if text.startswith('"""', i):
            end = text.find('"""', i + 3)
            return len(text) if end < 0 else end + 3
        return _skip_quoted(text, i, '"')
    if ch == "'":
        return _skip_quoted(text, i, "'")
    if ch == "/":
        if text.startswith("//", i):
            end = text.find("\n", i)
            return len(text) if end < 0 else end
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            return len(text) if end < 0 else end + 2
    return i


def _skip_quoted(text: str, i: int, quote: str) -> int:
    j = i + 1
    while j < len(text):
        c = text[j]
        if c == "\\":
            j += 2
            continue
        if c == quote:
            return j + 1
        if c == "\n":
            # Unterminated literal: stop at the end of the line
            return j
        j += 1
    return len(text)


def find_closing(text: str, start: int, end: int | None = None) -> int:
    """Find the bracket matching the one at ``text[start]``.

    Only brackets of the same kind are counted; literals and comments are
    skipped. Returns -1 when the bracket is unbalanced.
    """
    opener = text[start]
    closer = _PAIRS[opener]
    limit = len(text) if end is None else end
    depth = 0
    i = start
    while i < limit:
        nxt = skip_literal(text, i)
        if nxt != i:
            i = nxt
            continue
        c = text[i]
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str) -> list[str]:
    """Split ``text`` at commas not nested in brackets, generics or literals.

    A ``<`` only opens a generic argument list when it directly follows an
    identifier character, so comparisons such as ``a < b`` are not mistaken
    for generics.
    """
    parts: list[str] = []
    depth = 0
    angle = 0
    last = 0
    i = 0
    while i < len(text):
        nxt = skip_literal(text, i)
        if nxt != i:
            i = nxt
            continue
        c = text[i]
        if c in "([{":
            depth += 1
        elif c in ")]}":
            depth -= 1
        elif c == "<" and i > 0 and (text[i - 1].isalnum() or text[i - 1] in "_$"):
            angle += 1
        elif c == ">" and angle > 0 and text[i - 1] != "-":
            angle -= 1
        elif c == "," and depth == 0 and angle == 0:
            parts.append(text[last:i])
            last = i + 1
        i += 1
    parts.append(text[last:])
    return parts


def skip_spaces(text: str, i: int) -> int:
    while i < len(text) and text[i] in " \t\r\n":
        i += 1
    return i


def parse_type(text: str, pos: int = 0) -> int:
    """Recognize a type expression starting at ``pos``.

    Accepts a qualified name, optional generic arguments (nested to any
    depth, wildcard and variance forms included), an optional nullable
    marker and any number of ``[]`` suffixes. Returns the end index, or -1
    when no type starts at ``pos``.
    """
    match = _QUALIFIED_NAME.match(text, pos)
    if not match:
        return -1
    i = match.end()
    if text.startswith("<", i):
        i = _parse_type_arguments(text, i)
        if i < 0:
            return -1
    if text.startswith("?", i):
        i += 1
    while text.startswith("[]", i):
        i += 2
    return i


def _parse_type_arguments(text: str, i: int) -> int:
    i += 1
    while True:
        i = _parse_type_argument(text, skip_spaces(text, i))
        if i < 0:
            return -1
        i = skip_spaces(text, i)
        if text.startswith(",", i):
            i += 1
            continue
        if text.startswith(">", i):
            return i + 1
        return -1


def _parse_type_argument(text: str, i: int) -> int:
    if text.startswith("*", i):
        return i + 1
    if text.startswith("?", i):
        j = skip_spaces(text, i + 1)
        bound = _WILDCARD_BOUND.match(text, j)
        if not bound:
            return i + 1
        return parse_type(text, skip_spaces(text, bound.end()))
    variance = _VARIANCE.match(text, i)
    if variance:
        i = variance.end()
    return parse_type(text, i)


def leading_identifier(text: str) -> str:
    match = _QUALIFIED_NAME.match(text)
    return match.group(0).split(".")[0] if match else ""
