"""Tests for translation note parsing and filtering."""

from __future__ import annotations

import pytest

from quotelink.notes import (
    OccurrenceError,
    TranslationNote,
    load_notes_tsv,
    notes_in_range,
    parse_occurrence,
)
from quotelink.reference import QuoteScope


class TestParseOccurrence:
    """Tests for parse_occurrence()."""

    def test_digit_string(self):
        assert parse_occurrence("2") == 2

    def test_int(self):
        assert parse_occurrence(3) == 3

    @pytest.mark.parametrize("raw", [None, "", "  "])
    def test_missing_means_first(self, raw):
        assert parse_occurrence(raw) == 1

    @pytest.mark.parametrize(
        "raw", ["0", "-1", "abc", "1.5", "\u00b2", "\u2460", 0, -1, True]
    )
    def test_rejected(self, raw):
        with pytest.raises(OccurrenceError):
            parse_occurrence(raw)


class TestTranslationNote:
    """TranslationNote properties."""

    def test_key_uses_id(self):
        assert TranslationNote(id="cd02", reference="1:12", quote="καὶ").key == "cd02"

    def test_key_fallback(self):
        note = TranslationNote(id="", reference="1:12", quote=" καὶ ")
        assert note.key == "1:12-καὶ"

    def test_colorable_needs_quote_and_occurrence(self):
        assert TranslationNote(id="a", reference="1:12", quote="καὶ").is_colorable
        assert not TranslationNote(id="b", reference="1:12", quote="").is_colorable
        assert not TranslationNote(
            id="c", reference="1:12", quote="καὶ", occurrence=""
        ).is_colorable

    def test_scope(self):
        note = TranslationNote(id="a", reference="1:11-12", quote="καὶ")
        assert note.scope("3JN") == QuoteScope("3JN", 1, 11, 1, 12)


class TestLoadNotesTsv:
    """Tests for load_notes_tsv()."""

    def test_loads_fixture(self, notes):
        assert [n.id for n in notes] == ["ab01", "cd02", "ef03", "gh04", "ij05", "kl06"]

    def test_columns(self, notes):
        note = notes[1]
        assert note.reference == "1:12"
        assert note.quote == "ἡμεῖς & μαρτυροῦμεν & ἡμῶν"
        assert note.occurrence == "1"
        assert note.tags == "grammar"
        assert note.note.startswith("John speaks")

    def test_support_reference(self, notes):
        assert notes[0].support_reference.startswith("rc://")

    def test_general_note_has_no_quote(self, notes):
        assert not notes[-1].has_quote

    def test_orig_quote_column(self, tmp_path):
        """Older TSVs name the quote column OrigQuote."""
        path = tmp_path / "tn.tsv"
        path.write_text(
            "Book\tChapter\tVerse\tID\tOrigQuote\tOccurrence\tOccurrenceNote\n"
            "3JN\t1\t12\tzz01\tκαὶ\t2\tsecond and\n",
            encoding="utf-8",
        )
        [note] = load_notes_tsv(path)
        assert note.reference == "1:12"
        assert note.quote == "καὶ"
        assert note.occurrence == "2"
        assert note.note == "second and"


class TestNotesInRange:
    """Tests for notes_in_range()."""

    def test_filters_by_visible_verse(self, notes):
        kept = notes_in_range(notes, "3JN", QuoteScope.single("3JN", 1, 12))
        assert [n.id for n in kept] == ["cd02", "ef03", "gh04", "ij05", "kl06"]

    def test_no_visible_range_keeps_all(self, notes):
        assert notes_in_range(notes, "3JN", None) == notes

    def test_unparseable_reference_dropped(self):
        notes = [
            TranslationNote(id="a", reference="front:intro"),
            TranslationNote(id="b", reference="1:12", quote="καὶ"),
        ]
        kept = notes_in_range(notes, "3JN", QuoteScope.single("3JN", 1, 12))
        assert [n.id for n in kept] == ["b"]

    def test_old_testament_notes_kept(self):
        notes = [TranslationNote(id="a", reference="1:1", quote="בָּרָא")]
        assert notes_in_range(notes, "GEN", QuoteScope.single("GEN", 1, 1)) == notes

    def test_range_note_overlapping(self):
        notes = [TranslationNote(id="a", reference="1:11-12", quote="καὶ")]
        assert notes_in_range(notes, "3JN", QuoteScope.single("3JN", 1, 12)) == notes
