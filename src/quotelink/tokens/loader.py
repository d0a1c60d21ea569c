"""Load tokenized scripture produced by the ingestion pipeline.

The ingestion collaborator writes one JSON document per book:

    {
      "book": "3JN",
      "language": "el-x-koine",
      "role": "original",
      "chapters": [
        {"number": 1, "verses": [
          {"number": 12, "tokens": [
            {"id": 301, "text": "καὶ", "type": "word", "strong": "G25320"},
            {"id": 302, "text": " ", "type": "whitespace"}
          ]}
        ]}
      ]
    }

Target-language tokens carry "align": [original ids]. Tokens are NFC
normalized on load and nothing else is changed.
"""

from __future__ import annotations

import json
import logging
import unicodedata
from pathlib import Path

from quotelink.tokens.models import (
    LanguageRole,
    ScriptureDocument,
    Token,
    TokenKind,
    Verse,
)

logger = logging.getLogger(__name__)

# Token "type" values emitted by the ingestion side
_KIND_ALIASES = {
    "word": TokenKind.WORD,
    "number": TokenKind.NUMBER,
    "punctuation": TokenKind.PUNCTUATION,
    "whitespace": TokenKind.WHITESPACE,
    "paragraph": TokenKind.PARAGRAPH_MARKER,
    "paragraph-marker": TokenKind.PARAGRAPH_MARKER,
}

# Languages treated as original when the document has no explicit role
ORIGINAL_LANGUAGES = {"el-x-koine", "hbo", "grc"}


class TokenLoadError(ValueError):
    """Raised when a tokenized scripture document is malformed."""

    pass


def parse_token(data: dict) -> Token:
    """Build a Token from its JSON form."""
    try:
        token_id = int(data["id"])
        text = data["text"]
    except (KeyError, TypeError, ValueError):
        raise TokenLoadError(f"Token missing id/text: {data!r}")

    kind_raw = str(data.get("type", data.get("kind", "word"))).lower()
    kind = _KIND_ALIASES.get(kind_raw)
    if kind is None:
        raise TokenLoadError(f"Unknown token type '{kind_raw}' for token {token_id}")

    align = data.get("align", data.get("aligned_to")) or []
    try:
        aligned_to = tuple(int(a) for a in align)
    except (TypeError, ValueError):
        raise TokenLoadError(f"Invalid alignment ids for token {token_id}: {align!r}")

    return Token(
        id=token_id,
        text=unicodedata.normalize("NFC", text),
        kind=kind,
        aligned_to=aligned_to,
        strongs=data.get("strong") or data.get("strongs"),
        lemma=data.get("lemma"),
    )


def parse_document(data: dict, resource_id: str = "") -> ScriptureDocument:
    """Build a ScriptureDocument from its JSON form."""
    book = str(data.get("book", "")).upper()
    language = str(data.get("language", ""))

    role_raw = data.get("role")
    if role_raw is None:
        role = (
            LanguageRole.ORIGINAL
            if language in ORIGINAL_LANGUAGES
            else LanguageRole.TARGET
        )
    else:
        try:
            role = LanguageRole(role_raw)
        except ValueError:
            raise TokenLoadError(f"Unknown language role: '{role_raw}'")

    verses: list[Verse] = []
    last_id = None
    for chapter in data.get("chapters", []):
        chapter_number = int(chapter["number"])
        for verse in chapter.get("verses", []):
            tokens = [parse_token(t) for t in verse.get("tokens", [])]
            for token in tokens:
                if last_id is not None and token.id <= last_id:
                    raise TokenLoadError(
                        f"Token ids must increase in document order: "
                        f"{token.id} follows {last_id} in {chapter_number}:{verse['number']}"
                    )
                last_id = token.id
            verses.append(
                Verse(chapter=chapter_number, verse=int(verse["number"]), tokens=tokens)
            )

    logger.debug(f"Parsed {book} ({language}): {len(verses)} verses")
    return ScriptureDocument(
        book=book,
        language=language,
        role=role,
        verses=verses,
        resource_id=resource_id or str(data.get("resource_id", "")),
    )


def load_document(path: Path, resource_id: str = "") -> ScriptureDocument:
    """Load a tokenized scripture JSON file."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise TokenLoadError(f"Invalid JSON in {path}: {e}")
    return parse_document(data, resource_id=resource_id or path.stem)


def tokens_from_text(
    text: str, chapter: int = 1, verse: int = 1, start_id: int = 1
) -> Verse:
    """Tokenize plain text into a Verse.

    Splits on whitespace and peels leading/trailing punctuation into their
    own tokens. Meant for fixtures and the CLI, not as a USFM substitute.
    """
    tokens: list[Token] = []
    next_id = start_id

    def emit(piece: str, kind: TokenKind) -> None:
        nonlocal next_id
        tokens.append(Token(id=next_id, text=piece, kind=kind))
        next_id += 1

    words = text.split()
    for i, raw in enumerate(words):
        head = ""
        while raw and _is_punct(raw[0]):
            head += raw[0]
            raw = raw[1:]
        tail = ""
        while raw and _is_punct(raw[-1]):
            tail = raw[-1] + tail
            raw = raw[:-1]

        if head:
            emit(head, TokenKind.PUNCTUATION)
        if raw:
            emit(raw, TokenKind.NUMBER if raw.isdigit() else TokenKind.WORD)
        if tail:
            emit(tail, TokenKind.PUNCTUATION)
        if i < len(words) - 1:
            emit(" ", TokenKind.WHITESPACE)

    return Verse(chapter=chapter, verse=verse, tokens=tokens)


def _is_punct(c: str) -> bool:
    return unicodedata.category(c).startswith("P")
