"""Token store: tokenized verses and their loaders."""

from quotelink.tokens.loader import (
    TokenLoadError,
    load_document,
    parse_document,
    tokens_from_text,
)
from quotelink.tokens.models import (
    LanguageRole,
    ScriptureDocument,
    Token,
    TokenKind,
    Verse,
    VerseProvider,
)

__all__ = [
    "LanguageRole",
    "ScriptureDocument",
    "Token",
    "TokenKind",
    "TokenLoadError",
    "Verse",
    "VerseProvider",
    "load_document",
    "parse_document",
    "tokens_from_text",
]
