"""Relevance scoring for graph nodes against query keywords.

All functions here are pure: the same node and keywords always give the
same score.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repograph.graph.types import Node
    from repograph.query.keywords import Keyword

ORIGINAL_MATCH = 2
STEM_MATCH = 1
EXACT_NAME_MATCH = 5
PARTIAL_NAME_MATCH = 3
PATTERN_MATCH = 3

PATTERN_INDICATORS: tuple[str, ...] = (
    "handler",
    "listener",
    "callback",
    "async",
    "promise",
    "fetch",
    "api",
    "request",
    "response",
    "middleware",
    "component",
    "hook",
    "state",
    "effect",
    "render",
)

# First matching group wins.
_PATTERN_TYPES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("api_pattern", ("api", "fetch", "request")),
    ("component_pattern", ("component", "render")),
    ("async_pattern", ("async", "promise")),
    ("event_pattern", ("event", "handler")),
    ("state_pattern", ("state", "hook")),
)


def calculate_relevance(node: Node, keywords: Sequence[Keyword]) -> int:
    """Score *node* against *keywords*.

    Per keyword: +2 when the serialized node contains the original token,
    +1 when it contains the stem, and +5 for an exact (+3 for a partial)
    match against the node's ``name``.
    """
    text = node.serialized()
    name = (node.name or "").lower()
    score = 0
    for keyword in keywords:
        if keyword.original in text:
            score += ORIGINAL_MATCH
        if keyword.stemmed in text:
            score += STEM_MATCH
        if name:
            if name == keyword.original:
                score += EXACT_NAME_MATCH
            elif keyword.original in name:
                score += PARTIAL_NAME_MATCH
    return score


def calculate_pattern_relevance(node: Node, query: str, keywords: Sequence[Keyword]) -> int:
    """:func:`calculate_relevance` plus +3 per pattern indicator shared by query and node."""
    score = calculate_relevance(node, keywords)
    text = node.serialized()
    lowered = query.lower()
    for indicator in PATTERN_INDICATORS:
        if indicator in lowered and indicator in text:
            score += PATTERN_MATCH
    return score


def identify_pattern_type(query: str) -> str:
    """Classify the implementation pattern a query asks about."""
    lowered = query.lower()
    for pattern_type, indicators in _PATTERN_TYPES:
        if any(indicator in lowered for indicator in indicators):
            return pattern_type
    return "general_pattern"
