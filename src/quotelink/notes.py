"""Translation notes as consumed from the notes ingestion collaborator.

Notes and questions arrive as TSV rows with a book-relative Reference, an
ID, a Quote in the original language and an Occurrence. Only those columns
matter to highlighting; the rest are carried through for display.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path

from quotelink.reference import QuoteScope, ReferenceParseError, parse_note_reference

logger = logging.getLogger(__name__)

# Column names across the TN and TQ TSV variants (lowercase)
_QUOTE_COLUMNS = ("quote", "origquote", "origwords")
_NOTE_COLUMNS = ("note", "occurrencenote", "question")


class OccurrenceError(ValueError):
    """Raised when an occurrence value is not a positive integer."""

    pass


def parse_occurrence(raw: str | int | None) -> int:
    """Parse an occurrence column value.

    Missing or blank means 1. Anything else must be a positive integer;
    "0", "-1" (upstream's "every occurrence") and non-numeric text are
    rejected instead of silently defaulted.

    Examples:
        >>> parse_occurrence("2")
        2
        >>> parse_occurrence("")
        1
    """
    if raw is None:
        return 1
    if isinstance(raw, bool):
        raise OccurrenceError(f"Invalid occurrence: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return 1
        if not text.isdecimal():
            raise OccurrenceError(
                f"Invalid occurrence: '{raw}'. Occurrence must be a positive integer."
            )
        try:
            value = int(text)
        except ValueError as e:
            raise OccurrenceError(f"Invalid occurrence: '{raw}'.") from e
    if value < 1:
        raise OccurrenceError(f"Invalid occurrence: {value}. Occurrences start at 1.")
    return value


@dataclass(frozen=True)
class TranslationNote:
    """A note or question attached to a quote in a verse."""

    id: str
    reference: str
    quote: str = ""
    occurrence: str = "1"
    note: str = ""
    tags: str = ""
    support_reference: str = ""

    @property
    def key(self) -> str:
        """Stable key; falls back to reference + quote for notes without an ID."""
        return self.id or f"{self.reference}-{self.quote.strip()}"

    @property
    def has_quote(self) -> bool:
        return bool(self.quote and self.quote.strip())

    @property
    def is_colorable(self) -> bool:
        """Only notes with both a quote and an occurrence get a color."""
        return self.has_quote and bool(str(self.occurrence or "").strip())

    def scope(self, book: str) -> QuoteScope:
        return parse_note_reference(self.reference, book)


def notes_in_range(
    notes: list[TranslationNote], book: str, visible: QuoteScope | None
) -> list[TranslationNote]:
    """Keep the notes whose reference overlaps the visible range.

    Notes with an unparseable reference are dropped from the filtered list.
    Order is preserved; colors are assigned from this order.
    """
    if visible is None:
        return list(notes)

    kept = []
    for note in notes:
        try:
            scope = parse_note_reference(note.reference, book)
        except ReferenceParseError as e:
            logger.debug(f"Skipping note {note.key}: {e}")
            continue
        if scope.overlaps(visible):
            kept.append(note)
    return kept


def _pick(row: dict, names: tuple[str, ...]) -> str:
    for name in names:
        if row.get(name):
            return row[name]
    return ""


def load_notes_tsv(path: Path) -> list[TranslationNote]:
    """Load notes or questions from an unfoldingWord-style TSV file."""
    notes = []
    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
        for row in reader:
            lowered = {(k or "").strip().lower(): (v or "") for k, v in row.items()}
            reference = lowered.get("reference", "")
            if not reference and lowered.get("chapter"):
                reference = f"{lowered['chapter']}:{lowered.get('verse', '')}"
            notes.append(
                TranslationNote(
                    id=lowered.get("id", "").strip(),
                    reference=reference.strip(),
                    quote=_pick(lowered, _QUOTE_COLUMNS).strip(),
                    occurrence=lowered.get("occurrence", "").strip(),
                    note=_pick(lowered, _NOTE_COLUMNS),
                    tags=lowered.get("tags", ""),
                    support_reference=lowered.get("supportreference", ""),
                )
            )
    logger.debug(f"Loaded {len(notes)} notes from {path}")
    return notes
