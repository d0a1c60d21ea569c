"""Reference parsing for note and question references.

Notes arrive with a book-relative reference and the book comes from the
current navigation, so the accepted grammar is narrow:

- Single verse: "1:12"
- Hyphen range: "3:4-5"
- En-dash range: "3:4–5"

Chapter-only ("3"), front matter ("front:intro"), comma lists and
malformed strings are rejected rather than guessed.

Output: a QuoteScope naming the inclusive verse range to search.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


# ============================================================================
# Book Code Normalization
# ============================================================================

# USFM book codes (39 OT books in canonical order)
OT_BOOK_CODES = [
    "GEN",
    "EXO",
    "LEV",
    "NUM",
    "DEU",
    "JOS",
    "JDG",
    "RUT",
    "1SA",
    "2SA",
    "1KI",
    "2KI",
    "1CH",
    "2CH",
    "EZR",
    "NEH",
    "EST",
    "JOB",
    "PSA",
    "PRO",
    "ECC",
    "SNG",
    "ISA",
    "JER",
    "LAM",
    "EZK",
    "DAN",
    "HOS",
    "JOL",
    "AMO",
    "OBA",
    "JON",
    "MIC",
    "NAM",
    "HAB",
    "ZEP",
    "HAG",
    "ZEC",
    "MAL",
]

# USFM book codes (27 NT books in canonical order)
NT_BOOK_CODES = [
    "MAT",
    "MRK",
    "LUK",
    "JHN",
    "ACT",
    "ROM",
    "1CO",
    "2CO",
    "GAL",
    "EPH",
    "PHP",
    "COL",
    "1TH",
    "2TH",
    "1TI",
    "2TI",
    "TIT",
    "PHM",
    "HEB",
    "JAS",
    "1PE",
    "2PE",
    "1JN",
    "2JN",
    "3JN",
    "JUD",
    "REV",
]

BOOK_CODES = OT_BOOK_CODES + NT_BOOK_CODES

# Alias mapping (lowercase key -> USFM code)
BOOK_ALIASES: dict[str, str] = {
    "genesis": "GEN",
    "exodus": "EXO",
    "exod": "EXO",
    "leviticus": "LEV",
    "numbers": "NUM",
    "deuteronomy": "DEU",
    "deut": "DEU",
    "joshua": "JOS",
    "josh": "JOS",
    "judges": "JDG",
    "judg": "JDG",
    "ruth": "RUT",
    "1samuel": "1SA",
    "1sam": "1SA",
    "2samuel": "2SA",
    "2sam": "2SA",
    "1kings": "1KI",
    "2kings": "2KI",
    "1chronicles": "1CH",
    "1chr": "1CH",
    "2chronicles": "2CH",
    "2chr": "2CH",
    "ezra": "EZR",
    "nehemiah": "NEH",
    "esther": "EST",
    "esth": "EST",
    "psalms": "PSA",
    "psalm": "PSA",
    "ps": "PSA",
    "proverbs": "PRO",
    "prov": "PRO",
    "ecclesiastes": "ECC",
    "eccl": "ECC",
    "songofsongs": "SNG",
    "songofsolomon": "SNG",
    "isaiah": "ISA",
    "jeremiah": "JER",
    "lamentations": "LAM",
    "ezekiel": "EZK",
    "ezek": "EZK",
    "daniel": "DAN",
    "hosea": "HOS",
    "joel": "JOL",
    "amos": "AMO",
    "obadiah": "OBA",
    "obad": "OBA",
    "jonah": "JON",
    "micah": "MIC",
    "nahum": "NAM",
    "nah": "NAM",
    "habakkuk": "HAB",
    "zephaniah": "ZEP",
    "zeph": "ZEP",
    "haggai": "HAG",
    "zechariah": "ZEC",
    "zech": "ZEC",
    "malachi": "MAL",
    "matthew": "MAT",
    "matt": "MAT",
    "mt": "MAT",
    "mark": "MRK",
    "mk": "MRK",
    "luke": "LUK",
    "lk": "LUK",
    "john": "JHN",
    "jn": "JHN",
    "acts": "ACT",
    "romans": "ROM",
    "rom": "ROM",
    "1corinthians": "1CO",
    "1cor": "1CO",
    "2corinthians": "2CO",
    "2cor": "2CO",
    "galatians": "GAL",
    "ephesians": "EPH",
    "philippians": "PHP",
    "phil": "PHP",
    "colossians": "COL",
    "1thessalonians": "1TH",
    "1thess": "1TH",
    "2thessalonians": "2TH",
    "2thess": "2TH",
    "1timothy": "1TI",
    "1tim": "1TI",
    "2timothy": "2TI",
    "2tim": "2TI",
    "titus": "TIT",
    "philemon": "PHM",
    "phlm": "PHM",
    "hebrews": "HEB",
    "james": "JAS",
    "1peter": "1PE",
    "1pet": "1PE",
    "2peter": "2PE",
    "2pet": "2PE",
    "1john": "1JN",
    "2john": "2JN",
    "3john": "3JN",
    "jude": "JUD",
    "revelation": "REV",
    "rev": "REV",
}


class ReferenceParseError(ValueError):
    """Error parsing a reference, with an actionable message."""

    pass


def normalize_book_code(name: str) -> str:
    """Normalize a book name or code to its USFM code.

    Args:
        name: Book code or name (e.g., "3jn", "3 John", "JHN")

    Returns:
        USFM code (e.g., "3JN")

    Raises:
        ReferenceParseError: If the book is not recognized
    """
    cleaned = name.strip().replace(".", "")
    if cleaned.upper() in BOOK_CODES:
        return cleaned.upper()

    key = cleaned.lower().replace(" ", "")
    if key in BOOK_ALIASES:
        return BOOK_ALIASES[key]

    suggestions = [
        code for code in BOOK_CODES if code.lower().startswith(key[:2])
    ][:3]
    suggestion_text = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
    raise ReferenceParseError(f"Unknown book: '{name}'.{suggestion_text}")


@dataclass(frozen=True)
class QuoteScope:
    """Inclusive verse range a quote is searched in."""

    book: str
    start_chapter: int
    start_verse: int
    end_chapter: int
    end_verse: int

    @classmethod
    def single(cls, book: str, chapter: int, verse: int) -> "QuoteScope":
        return cls(book, chapter, verse, chapter, verse)

    @property
    def is_valid(self) -> bool:
        """True when every bound is an integer >= 1 and end is not before start."""
        bounds = (self.start_chapter, self.start_verse, self.end_chapter, self.end_verse)
        if not all(isinstance(b, int) and not isinstance(b, bool) for b in bounds):
            return False
        if min(bounds) < 1:
            return False
        return (self.end_chapter, self.end_verse) >= (self.start_chapter, self.start_verse)

    def contains(self, chapter: int, verse: int) -> bool:
        return (
            (self.start_chapter, self.start_verse)
            <= (chapter, verse)
            <= (self.end_chapter, self.end_verse)
        )

    def overlaps(self, other: "QuoteScope") -> bool:
        return not (
            (self.end_chapter, self.end_verse) < (other.start_chapter, other.start_verse)
            or (other.end_chapter, other.end_verse)
            < (self.start_chapter, self.start_verse)
        )

    def __str__(self) -> str:
        prefix = f"{self.book} " if self.book else ""
        if self.end_chapter != self.start_chapter:
            return (
                f"{prefix}{self.start_chapter}:{self.start_verse}-"
                f"{self.end_chapter}:{self.end_verse}"
            )
        if self.end_verse != self.start_verse:
            return f"{prefix}{self.start_chapter}:{self.start_verse}-{self.end_verse}"
        return f"{prefix}{self.start_chapter}:{self.start_verse}"


_REFERENCE_PATTERN = re.compile(r"^(\d+):(\d+)(?:-(\d+))?$")


def parse_note_reference(ref_string: str, book: str = "") -> QuoteScope:
    """Parse a book-relative note reference into a QuoteScope.

    Args:
        ref_string: Reference like "1:12" or "3:4-5"
        book: Book code from the current navigation

    Returns:
        QuoteScope covering the referenced verse(s)

    Raises:
        ReferenceParseError: With actionable message if parsing fails

    Examples:
        >>> parse_note_reference("1:12", "3JN")
        QuoteScope(book='3JN', start_chapter=1, start_verse=12, end_chapter=1, end_verse=12)
        >>> str(parse_note_reference("3:4-5", "ROM"))
        'ROM 3:4-5'
    """
    if ref_string is None or not str(ref_string).strip():
        raise ReferenceParseError("Empty reference string provided.")

    normalized = "".join(str(ref_string).split())
    normalized = normalized.replace("–", "-").replace("—", "-")

    if ":" not in normalized:
        raise ReferenceParseError(
            f"Invalid reference format: '{ref_string}'. "
            "Expected 'chapter:verse' (e.g., '1:12' or '3:4-5')."
        )

    match = _REFERENCE_PATTERN.match(normalized)
    if not match:
        raise ReferenceParseError(
            f"Cannot parse reference: '{ref_string}'. "
            "Expected 'chapter:verse' (e.g., '1:12' or '3:4-5')."
        )

    chapter_str, start_str, end_str = match.groups()
    chapter = int(chapter_str)
    start = int(start_str)
    end = int(end_str) if end_str else start

    if chapter < 1:
        raise ReferenceParseError(f"Invalid chapter number: {chapter}. Chapters start at 1.")
    if start < 1:
        raise ReferenceParseError(f"Invalid verse number: {start}. Verses start at 1.")
    if end < start:
        raise ReferenceParseError(
            f"Invalid verse range: '{ref_string}'. "
            f"Start verse ({start}) cannot be greater than end verse ({end})."
        )

    book_code = normalize_book_code(book) if book else ""
    return QuoteScope(book_code, chapter, start, chapter, end)


def format_verse_ref(book: str, chapter: int, verse: int) -> str:
    """Format a single verse as used in MatchSegment.verse_ref ("3JN 1:12")."""
    if book:
        return f"{book} {chapter}:{verse}"
    return f"{chapter}:{verse}"
