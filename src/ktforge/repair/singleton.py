"""
Singleton lowering for the default aggregation class.

The generator collects top-level functions into a reserved class
(``__default``) that is never instantiated. Kotlin expresses that as an
``object``. Matching is by the reserved name only. The class is lowered
only when every constructor it declares is empty; a constructor taking
parameters (or doing work) leaves the class untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ktforge.repair.scanning import find_closing, skip_literal, skip_spaces

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATE = "__default"

_VISIBILITY = r"(?:(?:private|protected|internal|public)[ \t]+)*"
_DECLARATION_KEYWORDS = re.compile(r"\b(?:class|object|interface|fun|val|var)\b")


@dataclass
class LoweringResult:
    """Outcome of lowering one file."""

    path: str | None
    text: str
    converted: bool
    reason: str


class SingletonLowering:
    """Turns ``class __default`` into ``object __default``."""

    def __init__(self, reserved_name: str = DEFAULT_AGGREGATE):
        self.reserved_name = reserved_name
        name = re.escape(reserved_name)
        self._class_decl = re.compile(rf"\b(?:open[ \t]+)?class[ \t]+{name}(?![\w$])")
        self._object_decl = re.compile(rf"\bobject[ \t]+{name}(?![\w$])")
        self._constructor = re.compile(rf"[ \t]*{_VISIBILITY}(constructor|{name})[ \t]*\(")

    def lower(self, text: str, path: str | None = None) -> LoweringResult:
        decl = self._class_decl.search(text)
        if not decl:
            if self._object_decl.search(text):
                return LoweringResult(path, text, False, "already an object")
            return LoweringResult(path, text, False, f"no {self.reserved_name} class")

        removals: list[tuple[int, int]] = []
        pos = skip_spaces(text, decl.end())

        if text.startswith("(", pos):
            close = find_closing(text, pos)
            if close < 0:
                return self._skip(path, text, "unbalanced primary constructor")
            if text[pos + 1:close].strip():
                return self._skip(path, text, "primary constructor takes parameters")
            removals.append((decl.end(), close + 1))
            pos = close + 1

        brace = text.find("{", pos)
        if brace >= 0 and not _DECLARATION_KEYWORDS.search(text, pos, brace):
            body_end = find_closing(text, brace)
            if body_end < 0:
                return self._skip(path, text, "unbalanced class body")
            for start in self._member_constructors(text, brace + 1, body_end):
                span = self._empty_constructor_span(text, start)
                if span is None:
                    return self._skip(path, text, "constructor is not empty")
                removals.append(span)

        lowered = text
        for start, end in sorted(removals, reverse=True):
            lowered = lowered[:start] + lowered[end:]
        lowered = lowered[:decl.start()] + f"object {self.reserved_name}" + lowered[decl.end():]
        logger.debug(f"Lowered {self.reserved_name} to object in {path or '<text>'}")
        return LoweringResult(path, lowered, True, "converted to object")

    def _skip(self, path: str | None, text: str, reason: str) -> LoweringResult:
        logger.info(f"Left {self.reserved_name} as a class in {path or '<text>'}: {reason}")
        return LoweringResult(path, text, False, reason)

    def _member_constructors(self, text: str, start: int, end: int) -> list[int]:
        """Start offsets of constructor declarations directly inside the body."""
        found: list[int] = []
        depth = 0
        line_start = True
        i = start
        while i < end:
            if line_start and depth == 0:
                match = self._constructor.match(text, i)
                if match and match.end() <= end:
                    found.append(i)
            line_start = False
            nxt = skip_literal(text, i)
            if nxt != i:
                i = nxt
                continue
            c = text[i]
            if c == "{":
                depth += 1
            elif c == "}":
                depth -= 1
            elif c == "\n":
                line_start = True
            i += 1
        return found

    def _empty_constructor_span(self, text: str, start: int) -> tuple[int, int] | None:
        """Span covering an empty constructor and its line, or None if non-empty."""
        match = self._constructor.match(text, start)
        open_paren = match.end() - 1
        close = find_closing(text, open_paren)
        if close < 0 or text[open_paren + 1:close].strip():
            return None

        after = skip_spaces(text, close + 1)
        if text.startswith("{", after):
            body_close = find_closing(text, after)
            if body_close < 0 or text[after + 1:body_close].strip():
                return None
            end = body_close + 1
        elif text.startswith(":", after):
            # Delegates to another constructor
            return None
        else:
            end = close + 1

        line_end = text.find("\n", end)
        if line_end < 0:
            line_end = len(text)
        if text[end:line_end].strip():
            return start, end
        return start, min(line_end + 1, len(text))
