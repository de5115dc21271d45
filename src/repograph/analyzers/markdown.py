"""MarkdownAnalyzer: headings and fenced code blocks."""

from __future__ import annotations

import re

from repograph.analyzers._base import line_of
from repograph.records import CodeBlockRecord, FileRecord, HeadingRecord

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
_CODE_BLOCK_RE = re.compile(r"```(\w*)\n([\s\S]*?)```")


class MarkdownAnalyzer:
    """Extracts headings and fenced code blocks from markdown documents."""

    @property
    def language(self) -> str:
        return "markdown"

    @property
    def extensions(self) -> frozenset[str]:
        return frozenset({".md", ".markdown"})

    def analyze_file(self, path: str, content: str) -> FileRecord:
        blocks: list[CodeBlockRecord] = []
        fenced: list[tuple[int, int]] = []
        for match in _CODE_BLOCK_RE.finditer(content):
            fenced.append(match.span())
            blocks.append(
                CodeBlockRecord(
                    language=match.group(1) or "plain",
                    code=match.group(2).strip(),
                    line=line_of(content, match.start()),
                )
            )

        headings: list[HeadingRecord] = []
        for match in _HEADING_RE.finditer(content):
            # '#' lines inside a fence are comments, not headings
            if any(start <= match.start() < end for start, end in fenced):
                continue
            headings.append(
                HeadingRecord(
                    text=match.group(2).strip(),
                    level=len(match.group(1)),
                    line=line_of(content, match.start()),
                )
            )

        return FileRecord(
            path=path,
            language=self.language,
            raw=content,
            headings=tuple(headings),
            code_blocks=tuple(blocks),
        )
