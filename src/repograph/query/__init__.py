"""Query layer: intent classification, keyword extraction, relevance ranking."""

from repograph.query._engine import QueryEngine, rank_results
from repograph.query.classifier import SEED_PHRASES, IntentClassifier, QueryType
from repograph.query.keywords import STOP_WORDS, Keyword, extract_keywords, tokenize
from repograph.query.ranker import (
    PATTERN_INDICATORS,
    calculate_pattern_relevance,
    calculate_relevance,
    identify_pattern_type,
)
from repograph.query.types import NodeContext, QueryResult, RankedResult

__all__ = [
    "PATTERN_INDICATORS",
    "SEED_PHRASES",
    "STOP_WORDS",
    "IntentClassifier",
    "Keyword",
    "NodeContext",
    "QueryEngine",
    "QueryResult",
    "QueryType",
    "RankedResult",
    "calculate_pattern_relevance",
    "calculate_relevance",
    "extract_keywords",
    "identify_pattern_type",
    "rank_results",
    "tokenize",
]
