"""Render a :class:`ContextBundle` as plain text or markdown."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from repograph.context.excerpt import elision_marker

if TYPE_CHECKING:
    from repograph.context.types import ContextBundle, FileExcerpt

LIST_LIMIT = 10
TEXT_RELATIONSHIP_LIMIT = 10
MARKDOWN_RELATIONSHIP_LIMIT = 15
SNIPPET_LIMIT = 5
SNIPPET_CODE_LENGTH = 500

_FENCE_LANGUAGES = {"javascript": "js", "python": "py", "typescript": "ts"}
_BACKTICK_RUN_RE = re.compile(r"`{3,}")


def format_text(bundle: ContextBundle) -> str:
    """Plain-text rendering: summary, listings, relationships, then sources."""
    summary = bundle.summary
    out = [f'Context for query: "{bundle.query}"', ""]
    out += [
        "Summary:",
        f"- Total nodes: {summary.total_nodes}",
        f"- Files: {len(summary.files)}",
        f"- Functions: {len(summary.functions)}",
        f"- Classes: {len(summary.classes)}",
        "",
    ]

    if summary.files:
        out.append("Files:")
        out += [f"  - {path}" for path in summary.files[:LIST_LIMIT]]
        out.append("")
    if summary.functions:
        out.append("Functions:")
        out += [f"  - {f.name} ({f.file}:{f.line})" for f in summary.functions[:LIST_LIMIT]]
        out.append("")
    if summary.classes:
        out.append("Classes:")
        out += [f"  - {c.name} ({c.file}:{c.line})" for c in summary.classes[:LIST_LIMIT]]
        out.append("")
    if bundle.relationships:
        out.append("Key Relationships:")
        out += [
            f"  - {r.source} {r.relationship} {r.target}"
            for r in bundle.relationships[:TEXT_RELATIONSHIP_LIMIT]
        ]
        out.append("")
    if bundle.files:
        out.append("Source Code:")
        for excerpt in bundle.files:
            out.append(f"--- {excerpt.path} ---")
            out.append(excerpt.content)
            note = _truncation_note(excerpt)
            if note:
                out.append(note)
            out.append("")

    return "\n".join(out)


def format_markdown(bundle: ContextBundle) -> str:
    """Markdown rendering with one fenced section per included file."""
    summary = bundle.summary
    out = [f'# Context for: "{bundle.query}"', ""]
    out += [
        "## Summary",
        "",
        f"- **Total nodes**: {summary.total_nodes}",
        f"- **Files**: {len(summary.files)}",
        f"- **Functions**: {len(summary.functions)}",
        f"- **Classes**: {len(summary.classes)}",
        "",
    ]

    if summary.files:
        out += ["## Files", ""]
        out += [f"- `{path}`" for path in summary.files[:LIST_LIMIT]]
        out.append("")
    if summary.functions:
        out += ["## Functions", ""]
        out += [f"- **{f.name}** - `{f.file}:{f.line}`" for f in summary.functions[:LIST_LIMIT]]
        out.append("")
    if summary.classes:
        out += ["## Classes", ""]
        out += [f"- **{c.name}** - `{c.file}:{c.line}`" for c in summary.classes[:LIST_LIMIT]]
        out.append("")

    if bundle.files:
        out += ["## Source Code", "", f"*Showing {len(bundle.files)} relevant files*", ""]
        for excerpt in bundle.files:
            out += _markdown_file_section(excerpt)

    code_snippets = [s for s in bundle.snippets if s.code][:SNIPPET_LIMIT]
    if code_snippets:
        out += ["## Code Snippets", ""]
        for snippet in code_snippets:
            code = snippet.code or ""
            body = code[:SNIPPET_CODE_LENGTH]
            if len(code) > SNIPPET_CODE_LENGTH:
                body += "\n... (truncated)"
            fence = _fence_for(body)
            out += [
                f"### {snippet.file or 'Code Block'}",
                "",
                f"{fence}{snippet.language or ''}",
                body,
                fence,
                "",
            ]

    if bundle.relationships:
        out += [
            "## Key Relationships",
            "",
            "| Source | Relationship | Target |",
            "|--------|--------------|--------|",
        ]
        out += [
            f"| {_cell(r.source)} | {r.relationship} | {_cell(r.target)} |"
            for r in bundle.relationships[:MARKDOWN_RELATIONSHIP_LIMIT]
        ]
        out.append("")

    return "\n".join(out)


def _markdown_file_section(excerpt: FileExcerpt) -> list[str]:
    out = [f"### File: {excerpt.path}", ""]
    if excerpt.exports:
        out += [f"**Exports:** {', '.join(excerpt.exports)}", ""]
    if excerpt.functions:
        out += [f"**Functions:** {', '.join(f.name for f in excerpt.functions)}", ""]
    if excerpt.classes:
        out += [f"**Classes:** {', '.join(c.name for c in excerpt.classes)}", ""]

    body = excerpt.content
    note = _truncation_note(excerpt)
    if note:
        body += f"\n\n{note}"
    fence = _fence_for(body)
    language = _FENCE_LANGUAGES.get(excerpt.language, excerpt.language)
    out += [f"{fence}{language}", body, fence, ""]
    return out


def _truncation_note(excerpt: FileExcerpt) -> str | None:
    missing = excerpt.full_length - len(excerpt.content)
    if missing <= 0:
        return None
    return f"{elision_marker(excerpt.language)} ({missing} more characters in original file)"


def _fence_for(body: str) -> str:
    """A backtick fence longer than any backtick run inside *body*."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN_RE.finditer(body)), default=2)
    return "`" * max(3, longest + 1)


def _cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")
