"""Unit tests for note reference parsing.

Tests cover:
- Book code normalization
- Single verse and range parsing (hyphen and en-dash)
- Rejection of chapter-only, front matter and reversed ranges
- QuoteScope containment, overlap and formatting
"""

from __future__ import annotations

import pytest

from quotelink.reference import (
    NT_BOOK_CODES,
    OT_BOOK_CODES,
    QuoteScope,
    ReferenceParseError,
    format_verse_ref,
    normalize_book_code,
    parse_note_reference,
)


class TestBookCodes:
    """Tests for normalize_book_code()."""

    def test_codes_pass_through(self):
        for code in NT_BOOK_CODES:
            assert normalize_book_code(code) == code

    def test_old_testament_codes(self):
        assert len(OT_BOOK_CODES) == 39
        for code in OT_BOOK_CODES:
            assert normalize_book_code(code) == code
        assert normalize_book_code("gen") == "GEN"

    def test_old_testament_names(self):
        assert normalize_book_code("Genesis") == "GEN"
        assert normalize_book_code("Ps.") == "PSA"
        assert normalize_book_code("Song of Songs") == "SNG"
        assert normalize_book_code("1 Samuel") == "1SA"

    def test_lowercase_code(self):
        assert normalize_book_code("3jn") == "3JN"

    def test_names_and_abbreviations(self):
        assert normalize_book_code("3 John") == "3JN"
        assert normalize_book_code("Rom.") == "ROM"
        assert normalize_book_code("matt") == "MAT"

    def test_unknown_book_suggests(self):
        with pytest.raises(ReferenceParseError) as exc_info:
            normalize_book_code("Ma")
        assert "Did you mean" in str(exc_info.value)

    def test_unknown_book(self):
        with pytest.raises(ReferenceParseError, match="Unknown book"):
            normalize_book_code("Hezekiah")


class TestParseNoteReference:
    """Tests for parse_note_reference()."""

    def test_single_verse(self):
        scope = parse_note_reference("1:12", "3JN")
        assert scope == QuoteScope("3JN", 1, 12, 1, 12)

    def test_old_testament_book(self):
        assert parse_note_reference("1:1", "GEN") == QuoteScope("GEN", 1, 1, 1, 1)

    def test_hyphen_range(self):
        scope = parse_note_reference("3:4-5", "ROM")
        assert (scope.start_verse, scope.end_verse) == (4, 5)
        assert str(scope) == "ROM 3:4-5"

    def test_en_dash_range(self):
        assert parse_note_reference("3:4–5", "ROM") == parse_note_reference("3:4-5", "ROM")

    def test_whitespace_ignored(self):
        assert parse_note_reference(" 1 : 12 ", "3JN").start_verse == 12

    def test_without_book(self):
        scope = parse_note_reference("1:12")
        assert scope.book == ""
        assert str(scope) == "1:12"

    @pytest.mark.parametrize(
        "ref",
        ["", "   ", "3", "front:intro", "1:intro", "1:2,4", "1:12-", "a:b"],
    )
    def test_rejected(self, ref):
        with pytest.raises(ReferenceParseError):
            parse_note_reference(ref, "3JN")

    def test_zero_chapter(self):
        with pytest.raises(ReferenceParseError, match="Chapters start at 1"):
            parse_note_reference("0:1", "3JN")

    def test_zero_verse(self):
        with pytest.raises(ReferenceParseError, match="Verses start at 1"):
            parse_note_reference("1:0", "3JN")

    def test_reversed_range(self):
        with pytest.raises(ReferenceParseError, match="cannot be greater"):
            parse_note_reference("1:12-11", "3JN")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_note_reference("nonsense")


class TestQuoteScope:
    """QuoteScope helpers."""

    def test_contains(self):
        scope = QuoteScope("3JN", 1, 11, 1, 12)
        assert scope.contains(1, 11)
        assert scope.contains(1, 12)
        assert not scope.contains(1, 13)

    def test_overlaps(self):
        visible = QuoteScope.single("3JN", 1, 12)
        assert QuoteScope("3JN", 1, 11, 1, 12).overlaps(visible)
        assert not QuoteScope.single("3JN", 1, 11).overlaps(visible)

    def test_is_valid(self):
        assert QuoteScope.single("3JN", 1, 12).is_valid
        assert not QuoteScope("3JN", 1, 12, 1, 11).is_valid
        assert not QuoteScope.single("3JN", 0, 1).is_valid

    def test_cross_chapter_str(self):
        assert str(QuoteScope("ROM", 1, 32, 2, 1)) == "ROM 1:32-2:1"

    def test_format_verse_ref(self):
        assert format_verse_ref("3JN", 1, 12) == "3JN 1:12"
        assert format_verse_ref("", 1, 12) == "1:12"
