"""Text normalization for quote matching.

Quote words and token texts pass through the same policy before they are
compared, so a quote typed without accents can still find an accented
verse when diacritic stripping is on.

Normalization steps:
1. Unicode NFC normalization
2. Strip leading/trailing whitespace
3. Optionally remove characters that are neither letters nor digits
4. Optionally remove diacritical marks (accents, breathing marks)
5. Optionally case fold
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizationPolicy:
    """Which folds are applied before two words are compared."""

    case_fold: bool = True
    strip_diacritics: bool = False
    strip_punctuation: bool = True

    def normalize(self, text: str) -> str:
        """Normalize a single word (or phrase) under this policy.

        Examples:
            >>> NormalizationPolicy().normalize("Καὶ,")
            'καὶ'
            >>> LOOSE.normalize("ἡμεῖς")
            'ημεις'
            >>> EXACT.normalize("Καὶ,")
            'Καὶ,'
        """
        result = unicodedata.normalize("NFC", text).strip()

        if self.strip_punctuation:
            result = "".join(
                c
                for c in result
                if c.isspace() or _is_letter_or_digit(c) or _is_mark(c)
            )

        if self.strip_diacritics:
            nfd = unicodedata.normalize("NFD", result)
            stripped = "".join(c for c in nfd if unicodedata.category(c) != "Mn")
            result = unicodedata.normalize("NFC", stripped)

        if self.case_fold:
            result = result.lower()

        return " ".join(result.split())

    def words(self, phrase: str) -> list[str]:
        """Split a phrase on whitespace and normalize each word.

        Words that normalize to nothing (bare punctuation) are dropped.
        """
        out = []
        for word in phrase.split():
            norm = self.normalize(word)
            if norm:
                out.append(norm)
        return out

    def equal(self, a: str, b: str) -> bool:
        return self.normalize(a) == self.normalize(b)


def _is_letter_or_digit(c: str) -> bool:
    return unicodedata.category(c)[0] in ("L", "N")


def _is_mark(c: str) -> bool:
    # Combining marks stay attached to the preceding letter in NFD input
    return unicodedata.category(c)[0] == "M"


EXACT = NormalizationPolicy(case_fold=False, strip_diacritics=False, strip_punctuation=False)
DEFAULT = NormalizationPolicy()
LOOSE = NormalizationPolicy(case_fold=True, strip_diacritics=True, strip_punctuation=True)
