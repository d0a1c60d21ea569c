"""Quote matching: normalization, segment resolution and display text."""

from quotelink.matching.display import render_quote
from quotelink.matching.matcher import (
    MatchSegment,
    QuoteMatcher,
    QuoteMatchResult,
    split_segments,
)
from quotelink.matching.normalize import DEFAULT, EXACT, LOOSE, NormalizationPolicy

__all__ = [
    "DEFAULT",
    "EXACT",
    "LOOSE",
    "MatchSegment",
    "NormalizationPolicy",
    "QuoteMatchResult",
    "QuoteMatcher",
    "render_quote",
    "split_segments",
]
