"""Token store data models.

Tokens are produced by the ingestion collaborator and never mutated here.
A ScriptureDocument holds every verse of one book in one language and is
the verse provider the quote matcher searches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Protocol

if TYPE_CHECKING:
    from quotelink.reference import QuoteScope


class TokenKind(Enum):
    """Classification of a token."""

    WORD = "word"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    WHITESPACE = "whitespace"
    PARAGRAPH_MARKER = "paragraph"


class LanguageRole(Enum):
    """Whether a document is the canonical source text or a translation."""

    ORIGINAL = "original"
    """Greek or Hebrew source text (UGNT, UHB)."""

    TARGET = "target"
    """Aligned translation (ULT, UST)."""


@dataclass(frozen=True)
class Token:
    """Smallest addressable unit of verse text."""

    id: int
    """Unique within the document, increasing in document order."""

    text: str

    kind: TokenKind = TokenKind.WORD

    aligned_to: tuple[int, ...] = ()
    """Original-language token ids this token is aligned to."""

    strongs: str | None = None
    lemma: str | None = None

    @property
    def is_matchable(self) -> bool:
        """True for tokens a quote word can match."""
        return self.kind in (TokenKind.WORD, TokenKind.NUMBER)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        data = {"id": self.id, "text": self.text, "kind": self.kind.value}
        if self.aligned_to:
            data["aligned_to"] = list(self.aligned_to)
        if self.strongs:
            data["strongs"] = self.strongs
        if self.lemma:
            data["lemma"] = self.lemma
        return data


@dataclass
class Verse:
    """One verse and its positionally ordered tokens."""

    chapter: int
    verse: int
    tokens: list[Token] = field(default_factory=list)

    @property
    def reference(self) -> str:
        return f"{self.chapter}:{self.verse}"

    def matchable_tokens(self) -> list[Token]:
        """Tokens a quote can match, in verse order."""
        return [t for t in self.tokens if t.is_matchable]

    def text(self) -> str:
        """Reconstruct verse text, dropping paragraph markers."""
        return "".join(
            t.text for t in self.tokens if t.kind != TokenKind.PARAGRAPH_MARKER
        ).strip()


class VerseProvider(Protocol):
    """Anything that can hand out the verses of a scope in document order."""

    def verses_in(self, scope: "QuoteScope") -> list[Verse]: ...


@dataclass
class ScriptureDocument:
    """All loaded verses of one book in one language."""

    book: str
    language: str
    role: LanguageRole
    verses: list[Verse] = field(default_factory=list)
    resource_id: str = ""

    def __post_init__(self) -> None:
        self._by_id: dict[int, Token] = {}
        for token in self.all_tokens():
            self._by_id[token.id] = token

    @property
    def is_original(self) -> bool:
        return self.role == LanguageRole.ORIGINAL

    def all_tokens(self) -> Iterator[Token]:
        for verse in self.verses:
            yield from verse.tokens

    def token_by_id(self, token_id: int) -> Token | None:
        return self._by_id.get(token_id)

    def verse_of(self, token_id: int) -> Verse | None:
        """Verse containing the token, if loaded."""
        for verse in self.verses:
            for token in verse.tokens:
                if token.id == token_id:
                    return verse
        return None

    def verses_in(self, scope: "QuoteScope") -> list[Verse]:
        """Verses within scope, in document order."""
        if scope.book and self.book and scope.book != self.book:
            return []
        return [v for v in self.verses if scope.contains(v.chapter, v.verse)]

    def tokens_in(self, scope: "QuoteScope") -> list[Token]:
        return [t for v in self.verses_in(scope) for t in v.tokens]
