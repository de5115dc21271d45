"""Code-unit boundary resolvers: where does a function or class body end?

Two families are supported: brace-delimited languages (JavaScript,
TypeScript, and anything unrecognised) and indentation-delimited ones
(Python).  Lines are 0-indexed and ends are exclusive.
"""

from __future__ import annotations

import io
import tokenize
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

# Fallback unit length when a brace-delimited body never closes.
UNCLOSED_UNIT_LINES = 50

_QUOTES = "'\"`"
_BLOCK_COMMENT = "*/"
_INDENT_LANGUAGES = frozenset({"python"})


@runtime_checkable
class BoundaryResolver(Protocol):
    """Finds the exclusive end line of the unit starting at *start*."""

    def find_end(self, lines: Sequence[str], start: int) -> int: ...


class BraceBoundaryResolver:
    """Brace matching: the unit ends on the line that closes its first ``{``.

    Braces inside string literals, template literals and comments are not
    counted.  A statement that terminates (``;``) before any brace opens is
    a one-line unit, e.g. ``const double = (x) => x * 2;``.
    """

    def find_end(self, lines: Sequence[str], start: int) -> int:
        n = len(lines)
        if start >= n:
            return n
        depth = 0
        started = False
        # Open quote character, or the block comment terminator.
        closer: str | None = None
        for i in range(start, n):
            line = lines[i]
            last = ""
            j = 0
            while j < len(line):
                char = line[j]
                if closer == _BLOCK_COMMENT:
                    if line.startswith(_BLOCK_COMMENT, j):
                        closer = None
                        j += 1
                elif closer is not None:
                    if char == "\\":
                        j += 1
                    elif char == closer:
                        closer = None
                elif line.startswith("//", j):
                    break
                elif line.startswith("/*", j):
                    closer = _BLOCK_COMMENT
                    j += 1
                else:
                    if not char.isspace():
                        last = char
                    if char in _QUOTES:
                        closer = char
                    elif char == "{":
                        depth += 1
                        started = True
                    elif char == "}" and started:
                        depth -= 1
                        if depth == 0:
                            return i + 1
                j += 1
            if closer in ("'", '"'):
                # Unterminated plain string: it cannot continue past the line.
                closer = None
            if not started and last == ";":
                return i + 1
        return min(start + UNCLOSED_UNIT_LINES, n)


class IndentBoundaryResolver:
    """Indentation dedent: the unit ends before the first non-blank line
    indented at or below its header.

    The header may span several lines (bracketed signatures); it ends with
    its logical line as :mod:`tokenize` sees it, so brackets in strings and
    comments do not extend it.  Lines inside triple-quoted strings never end
    a unit.  Trailing blank lines are not part of the unit.
    """

    def find_end(self, lines: Sequence[str], start: int) -> int:
        n = len(lines)
        if start >= n:
            return n
        base = _indent(lines[start])

        i = _header_end(lines, start)
        end = i
        in_string: str | None = None
        while i < n:
            line = lines[i]
            stripped = line.strip()
            if in_string is None and stripped and _indent(line) <= base:
                break
            in_string = _track_triple_quotes(line, in_string)
            if stripped:
                end = i + 1
            i += 1
        return end


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _header_end(lines: Sequence[str], start: int) -> int:
    """Exclusive end of the logical line that begins at *start*."""
    source = "\n".join(lines[start:]) + "\n"
    try:
        for tok in tokenize.generate_tokens(io.StringIO(source).readline):
            if tok.type == tokenize.NEWLINE:
                return start + tok.end[0]
    except (tokenize.TokenError, SyntaxError):
        # Unbalanced brackets: the header runs to the end of the file.
        return len(lines)
    return len(lines)


def _track_triple_quotes(line: str, in_string: str | None) -> str | None:
    """Return the open triple-quote delimiter after *line*, if any."""
    pos = 0
    while True:
        if in_string is None:
            candidates = [(line.find(q, pos), q) for q in ('"""', "'''")]
            found = [(idx, q) for idx, q in candidates if idx != -1]
            if not found:
                return None
            idx, quote = min(found)
            in_string = quote
            pos = idx + 3
        else:
            idx = line.find(in_string, pos)
            if idx == -1:
                return in_string
            in_string = None
            pos = idx + 3


_BRACE = BraceBoundaryResolver()
_INDENT = IndentBoundaryResolver()


def resolver_for(language: str) -> BoundaryResolver:
    """Return the boundary resolver for a language tag."""
    if language.lower() in _INDENT_LANGUAGES:
        return _INDENT
    return _BRACE
