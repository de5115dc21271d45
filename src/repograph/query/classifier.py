"""Query intent classification: naive Bayes over stemmed token features."""

from __future__ import annotations

from enum import StrEnum

from nltk.classify import NaiveBayesClassifier

from repograph.query.keywords import stem, tokenize


class QueryType(StrEnum):
    """The intent a natural-language query is routed by."""

    FUNCTION_SEARCH = "function_search"
    CLASS_SEARCH = "class_search"
    FILE_SEARCH = "file_search"
    PATTERN_SEARCH = "pattern_search"
    RELATIONSHIP_SEARCH = "relationship_search"
    DOCUMENTATION_SEARCH = "documentation_search"
    IMPORT_SEARCH = "import_search"
    GENERAL_SEARCH = "general_search"


# Training phrases per category.  Table order breaks score ties.
SEED_PHRASES: dict[QueryType, tuple[str, ...]] = {
    QueryType.FUNCTION_SEARCH: (
        "show me all functions",
        "find functions that",
        "list all methods",
        "what functions are in",
        "how to implement",
        "implementation of",
    ),
    QueryType.CLASS_SEARCH: (
        "show me all classes",
        "find classes that",
        "list all classes",
        "what classes are in",
        "class definition",
    ),
    QueryType.FILE_SEARCH: (
        "show me files",
        "find files containing",
        "list all files",
        "what files have",
        "where is",
    ),
    QueryType.PATTERN_SEARCH: (
        "how do I",
        "how to",
        "example of",
        "show me how",
        "code for",
        "pattern for",
        "best practice",
    ),
    QueryType.RELATIONSHIP_SEARCH: (
        "how does X relate to Y",
        "what is the connection between",
        "show relationships",
        "what depends on",
        "uses of",
    ),
    QueryType.DOCUMENTATION_SEARCH: (
        "show me the documentation",
        "find comments about",
        "what does this do",
        "explain",
        "documentation for",
    ),
    QueryType.IMPORT_SEARCH: (
        "import",
        "require",
        "dependencies",
        "what modules",
        "exports",
        "api",
    ),
}


def _features(text: str) -> dict[str, bool]:
    return {stem(token): True for token in tokenize(text)}


class IntentClassifier:
    """Deterministic naive Bayes intent classifier.

    Wraps :class:`nltk.classify.NaiveBayesClassifier`, trained once at
    construction on :data:`SEED_PHRASES` (or a supplied table with the same
    shape).  Tokens outside the training vocabulary are ignored; a query
    with no known token classifies as :attr:`QueryType.GENERAL_SEARCH`.
    """

    def __init__(self, seed_phrases: dict[QueryType, tuple[str, ...]] | None = None) -> None:
        table = seed_phrases if seed_phrases is not None else SEED_PHRASES
        self._categories: list[QueryType] = list(table)
        training = [
            (_features(phrase), category) for category, phrases in table.items() for phrase in phrases
        ]
        self._model = NaiveBayesClassifier.train(training)
        self._vocabulary = frozenset(name for features, _ in training for name in features)

    @property
    def vocabulary(self) -> frozenset[str]:
        return self._vocabulary

    def scores(self, query: str) -> dict[QueryType, float]:
        """Normalized log2-posterior per category for *query*."""
        dist = self._model.prob_classify(_features(query))
        return {category: dist.logprob(category) for category in self._categories}

    def classify(self, query: str) -> QueryType:
        """Return the single most likely intent for *query*."""
        if self._vocabulary.isdisjoint(_features(query)):
            return QueryType.GENERAL_SEARCH
        scores = self.scores(query)
        # max() keeps the first of equal scores, so table order breaks ties.
        return max(self._categories, key=scores.__getitem__)
