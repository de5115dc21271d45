"""Keyword extraction: tokenize, drop stop words, pair with Porter stems."""

from __future__ import annotations

import re
from dataclasses import dataclass

from nltk.stem.porter import PorterStemmer

_SPLIT_RE = re.compile(r"[^a-z0-9_]+")

_stemmer = PorterStemmer()

STOP_WORDS: frozenset[str] = frozenset(
    {
        # articles, prepositions
        "the", "a", "an", "at", "on", "in", "to", "for", "of", "with", "from",
        "about", "as",
        # auxiliary verbs
        "is", "are", "was", "been", "be", "have", "has", "had", "do", "does",
        "did", "will", "would", "could", "should", "may", "might", "must", "can",
        # interrogatives and query verbs
        "which", "what", "where", "how", "that", "show", "me", "all", "find", "list",
    }
)


@dataclass(frozen=True, slots=True)
class Keyword:
    """A query token paired with its stem."""

    original: str
    stemmed: str


def tokenize(text: str) -> list[str]:
    """Lowercase *text* and split it on non-word characters."""
    return [token for token in _SPLIT_RE.split(text.lower()) if token]


def stem(token: str) -> str:
    return _stemmer.stem(token)


def extract_keywords(query: str) -> list[Keyword]:
    """Return the non-stop-word tokens of *query*, in order, with their stems.

    An empty list is a valid result (e.g. ``"show me all"``).
    """
    return [
        Keyword(original=token, stemmed=stem(token))
        for token in tokenize(query)
        if token not in STOP_WORDS
    ]
