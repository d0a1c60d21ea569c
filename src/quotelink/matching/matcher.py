"""Quote matching against original-language tokens.

A note quote is an ordered list of segments separated by " & ". Each
segment is a word phrase that must match a contiguous run of word tokens
inside one verse. Segments resolve left to right, each strictly after the
previous one, which lets a quote pick out words that are separated by
other words in the verse.

The occurrence number selects which repetition of the whole segment
sequence is meant: the procedure is run `occurrence` times with the cursor
carried forward, and the combination found on the last run wins. The
cursor moves past the whole previous match, so repeats that overlap it
are not counted.

Matching never raises for bad input. Validation errors and phrases that
cannot be found both come back as a failed QuoteMatchResult with a reason.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from quotelink.matching.normalize import DEFAULT, NormalizationPolicy
from quotelink.notes import OccurrenceError, parse_occurrence
from quotelink.reference import (
    QuoteScope,
    ReferenceParseError,
    format_verse_ref,
    parse_note_reference,
)

if TYPE_CHECKING:
    from quotelink.notes import TranslationNote
    from quotelink.tokens.models import Token, Verse, VerseProvider

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = " & "
MIN_QUOTE_LENGTH = 2

# Failure reasons for validation errors
ERR_TOO_SHORT = "quote too short"
ERR_INVALID_OCCURRENCE = "invalid occurrence"
ERR_INVALID_REFERENCE = "invalid reference"
ERR_EMPTY_SEGMENT = "empty quote segment"


@dataclass(frozen=True)
class MatchSegment:
    """One resolved quote segment: a contiguous token span in one verse."""

    text: str
    """Segment text as written in the quote."""

    verse_ref: str
    """Verse the span lies in (e.g., '3JN 1:12')."""

    start_token_index: int
    """Index of the first token in the verse's matchable-token list."""

    end_token_index: int
    """Index of the last token (inclusive)."""

    tokens: tuple["Token", ...]

    @property
    def token_ids(self) -> list[int]:
        return [t.id for t in self.tokens]

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "text": self.text,
            "verse_ref": self.verse_ref,
            "start_token_index": self.start_token_index,
            "end_token_index": self.end_token_index,
            "tokens": [t.to_dict() for t in self.tokens],
        }


@dataclass(frozen=True)
class QuoteMatchResult:
    """Outcome of one match request. Immutable and never cached."""

    success: bool
    matches: tuple[MatchSegment, ...] = ()
    total_tokens: tuple["Token", ...] = ()
    error: str | None = None

    @classmethod
    def ok(cls, matches: list[MatchSegment]) -> "QuoteMatchResult":
        seen: dict[int, "Token"] = {}
        for segment in matches:
            for token in segment.tokens:
                seen.setdefault(token.id, token)
        total = tuple(seen[k] for k in sorted(seen))
        return cls(success=True, matches=tuple(matches), total_tokens=total)

    @classmethod
    def failure(cls, error: str) -> "QuoteMatchResult":
        return cls(success=False, error=error)

    @property
    def token_ids(self) -> list[int]:
        return [t.id for t in self.total_tokens]

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "success": self.success,
            "matches": [m.to_dict() for m in self.matches],
            "total_tokens": [t.to_dict() for t in self.total_tokens],
            "error": self.error,
        }


@dataclass(frozen=True)
class _Candidate:
    verse_index: int
    start: int
    end: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.verse_index, self.start)


@dataclass
class _SearchVerse:
    verse: "Verse"
    tokens: list["Token"]
    words: list[str]


def split_segments(raw_quote: str, delimiter: str = DEFAULT_DELIMITER) -> list[str]:
    """Split a raw quote into its segments.

    The delimiter's visible part is matched with any surrounding
    whitespace, so "a&b" and "a  &  b" split like "a & b".

    Examples:
        >>> split_segments("ἡμεῖς & μαρτυροῦμεν & ἡμῶν")
        ['ἡμεῖς', 'μαρτυροῦμεν', 'ἡμῶν']
    """
    core = delimiter.strip()
    pattern = r"\s*" + re.escape(core) + r"\s*"
    return [part.strip() for part in re.split(pattern, raw_quote.strip())]


class QuoteMatcher:
    """Resolves quotes to token spans in a verse provider."""

    def __init__(
        self,
        policy: NormalizationPolicy = DEFAULT,
        delimiter: str = DEFAULT_DELIMITER,
        min_quote_length: int = MIN_QUOTE_LENGTH,
    ):
        self.policy = policy
        self.delimiter = delimiter
        self.min_quote_length = min_quote_length

    @classmethod
    def from_settings(cls, settings) -> "QuoteMatcher":
        return cls(
            policy=settings.normalization,
            delimiter=settings.segment_delimiter,
            min_quote_length=settings.min_quote_length,
        )

    def resolve(
        self,
        scope: QuoteScope,
        raw_quote: str,
        occurrence: int,
        verses: "VerseProvider",
    ) -> QuoteMatchResult:
        """Find the token spans a quote refers to.

        Args:
            scope: Inclusive verse range to search
            raw_quote: Quote text, segments separated by the delimiter
            occurrence: 1-based repetition of the whole quote to select
            verses: Source of tokenized verses

        Returns:
            QuoteMatchResult; on failure `error` says why
        """
        quote = (raw_quote or "").strip()
        if len(quote) < self.min_quote_length:
            return QuoteMatchResult.failure(ERR_TOO_SHORT)

        if (
            not isinstance(occurrence, int)
            or isinstance(occurrence, bool)
            or occurrence < 1
        ):
            return QuoteMatchResult.failure(ERR_INVALID_OCCURRENCE)

        if not isinstance(scope, QuoteScope) or not scope.is_valid:
            return QuoteMatchResult.failure(ERR_INVALID_REFERENCE)

        segments = split_segments(quote, self.delimiter)
        segment_words = [self.policy.words(s) for s in segments]
        if any(not words for words in segment_words):
            return QuoteMatchResult.failure(ERR_EMPTY_SEGMENT)

        search = self._search_verses(verses.verses_in(scope))
        if not any(sv.tokens for sv in search):
            return QuoteMatchResult.failure(f"no tokens available for {scope}")

        candidates = [self._find_candidates(search, words) for words in segment_words]

        cursor = (0, 0)
        chosen: list[_Candidate] = []
        for repetition in range(1, occurrence + 1):
            chosen = []
            for index, segment_candidates in enumerate(candidates):
                found = next((c for c in segment_candidates if c.key >= cursor), None)
                if found is None:
                    error = (
                        f"segment {index + 1} '{segments[index]}' not found "
                        f"for occurrence {repetition} in {scope}"
                    )
                    logger.debug(f"Quote '{quote}' unresolved: {error}")
                    return QuoteMatchResult.failure(error)
                chosen.append(found)
                cursor = (found.verse_index, found.end + 1)

        matches = []
        for text, candidate in zip(segments, chosen):
            sv = search[candidate.verse_index]
            matches.append(
                MatchSegment(
                    text=text,
                    verse_ref=format_verse_ref(
                        scope.book, sv.verse.chapter, sv.verse.verse
                    ),
                    start_token_index=candidate.start,
                    end_token_index=candidate.end,
                    tokens=tuple(sv.tokens[candidate.start : candidate.end + 1]),
                )
            )
        return QuoteMatchResult.ok(matches)

    def resolve_note(
        self,
        note: "TranslationNote",
        book: str,
        verses: "VerseProvider",
    ) -> QuoteMatchResult:
        """Resolve a note's quote, turning bad reference/occurrence into failures."""
        try:
            occurrence = parse_occurrence(note.occurrence)
        except OccurrenceError:
            return QuoteMatchResult.failure(ERR_INVALID_OCCURRENCE)

        try:
            scope = parse_note_reference(note.reference, book)
        except ReferenceParseError:
            return QuoteMatchResult.failure(ERR_INVALID_REFERENCE)

        return self.resolve(scope, note.quote, occurrence, verses)

    def _search_verses(self, verses: list["Verse"]) -> list[_SearchVerse]:
        out = []
        for verse in verses:
            tokens = verse.matchable_tokens()
            out.append(
                _SearchVerse(
                    verse=verse,
                    tokens=tokens,
                    words=[self.policy.normalize(t.text) for t in tokens],
                )
            )
        return out

    @staticmethod
    def _find_candidates(
        search: list[_SearchVerse], words: list[str]
    ) -> list[_Candidate]:
        """Every contiguous run equal to `words`, in document order."""
        found = []
        width = len(words)
        for verse_index, sv in enumerate(search):
            for start in range(len(sv.words) - width + 1):
                if sv.words[start : start + width] == words:
                    found.append(_Candidate(verse_index, start, start + width - 1))
        return found
