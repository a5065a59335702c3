"""
clipcore.search
Query parsing and the matching engine used for interactive history search.
"""

from .matching import (  # noqa: F401
    SearchEngine,
    SequenceRatioScorer,
    SpanDensityScorer,
    TermScorer,
    display_text,
    highlight_offsets,
    make_scorer,
    search,
    search_text,
)
from .query_parser import parse_query  # noqa: F401

__all__ = [
    "SearchEngine",
    "SequenceRatioScorer",
    "SpanDensityScorer",
    "TermScorer",
    "display_text",
    "highlight_offsets",
    "make_scorer",
    "parse_query",
    "search",
    "search_text",
]
