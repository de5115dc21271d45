"""Bounded source excerpts built from whole code units.

An excerpt keeps, from one file's content:

* the import/export block at the top of the file,
* a window of lines around every keyword occurrence,

where every window touching a function or class is widened to that unit's
full extent.  Ranges are merged, then joined with an elision marker until
the character budget is reached; a range that would overflow the budget is
dropped whole.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from repograph.context.boundaries import resolver_for
from repograph.context.ranges import LineRange, merge_ranges

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repograph.graph.types import FileData
    from repograph.query.keywords import Keyword

IMPORT_LINE_RE = re.compile(r"^(import|export|from|require)")
IMPORT_BLOCK_LIMIT = 50
KEYWORD_WINDOW = 10

_HASH_COMMENT_LANGUAGES = frozenset({"python", "ruby", "shell", "bash", "yaml", "toml"})


def elision_marker(language: str) -> str:
    """Comment line used between non-contiguous excerpt ranges."""
    if language.lower() in _HASH_COMMENT_LANGUAGES:
        return "# ..."
    return "// ..."


def unit_ranges(file_data: FileData, lines: Sequence[str]) -> list[LineRange]:
    """Line ranges of every known function and class in *file_data*."""
    resolver = resolver_for(file_data.language)
    ranges: list[LineRange] = []
    for unit in (*file_data.functions, *file_data.classes):
        start = unit.line - 1
        if 0 <= start < len(lines):
            ranges.append(LineRange(start, resolver.find_end(lines, start)))
    return ranges


def import_block(lines: Sequence[str]) -> LineRange | None:
    """Lines ``0..last import`` when every import/export line is near the top."""
    import_lines = [i for i, line in enumerate(lines) if IMPORT_LINE_RE.match(line)]
    if not import_lines or max(import_lines) >= IMPORT_BLOCK_LIMIT:
        return None
    return LineRange(0, max(import_lines) + 1)


def keyword_windows(lines: Sequence[str], keywords: Sequence[Keyword]) -> list[LineRange]:
    """A +/- :data:`KEYWORD_WINDOW` line window around each keyword hit."""
    windows: list[LineRange] = []
    for i, line in enumerate(lines):
        lowered = line.lower()
        if any(k.original in lowered for k in keywords):
            windows.append(
                LineRange(max(0, i - KEYWORD_WINDOW), min(len(lines), i + KEYWORD_WINDOW + 1))
            )
    return windows


def expand_to_units(window: LineRange, units: Sequence[LineRange]) -> LineRange:
    """Widen *window* until no unit is only partially inside it."""
    changed = True
    while changed:
        changed = False
        for unit in units:
            if window.intersects(unit) and not window.covers(unit):
                window = window.union(unit)
                changed = True
    return window


def select_ranges(
    file_data: FileData,
    lines: Sequence[str],
    keywords: Sequence[Keyword],
) -> list[LineRange]:
    """Merged ranges worth keeping for *keywords* (whole units when there are none)."""
    units = unit_ranges(file_data, lines)
    candidates: list[LineRange] = []
    block = import_block(lines)
    if block is not None:
        candidates.append(block)
    if keywords:
        candidates.extend(keyword_windows(lines, keywords))
    else:
        candidates.extend(units)
    return merge_ranges(expand_to_units(c, units) for c in candidates)


def join_ranges(
    lines: Sequence[str],
    ranges: Sequence[LineRange],
    marker: str,
    max_length: int,
) -> str:
    """Concatenate *ranges* with *marker* lines, stopping before the budget overflows."""
    separator = f"\n\n{marker}\n\n"
    parts: list[str] = []
    length = 0
    for line_range in ranges:
        section = "\n".join(lines[line_range.start : line_range.end])
        added = len(section) + (len(separator) if parts else 0)
        if length + added > max_length:
            break
        parts.append(section)
        length += added
    return separator.join(parts)


def build_excerpt(file_data: FileData, keywords: Sequence[Keyword], max_length: int) -> str:
    """Excerpt of *file_data*'s content of at most *max_length* characters."""
    raw = file_data.raw
    if len(raw) <= max_length:
        return raw
    lines = raw.split("\n")
    ranges = select_ranges(file_data, lines, keywords)
    return join_ranges(lines, ranges, elision_marker(file_data.language), max_length)


def extract_unit_code(file_data: FileData, line: int) -> str:
    """Source of the function or class starting at 1-indexed *line*."""
    lines = file_data.raw.split("\n")
    start = line - 1
    if not 0 <= start < len(lines):
        return ""
    end = resolver_for(file_data.language).find_end(lines, start)
    return "\n".join(lines[start:end])
