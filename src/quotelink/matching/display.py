"""Rebuild a readable quote from a set of (usually aligned) tokens."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable

from quotelink.tokens.models import TokenKind

if TYPE_CHECKING:
    from quotelink.tokens.models import Token

ELLIPSIS = "..."

# Conservative punctuation class for tokens that lack a kind
_PUNCTUATION_RE = re.compile(r"^[.,;:!?'\"()\[\]{}\-–—…·;‘’“”]+$")


def is_punctuation(token: "Token") -> bool:
    return token.kind == TokenKind.PUNCTUATION or bool(
        _PUNCTUATION_RE.match(token.text.strip())
    )


def render_quote(
    selected: Iterable["Token"],
    all_tokens: Iterable["Token"],
    ellipsis: str = ELLIPSIS,
) -> str:
    """Join selected tokens into display text.

    Tokens are ordered by id. Where ids skip, the skipped tokens are looked
    up in `all_tokens`: punctuation-only gaps are spliced in verbatim, any
    other gap (or a gap nothing is known about) becomes the ellipsis.
    Whitespace tokens inside a gap are ignored.
    """
    ordered = sorted({t.id: t for t in selected}.values(), key=lambda t: t.id)
    if not ordered:
        return ""
    if len(ordered) == 1:
        return ordered[0].text.strip()

    known = sorted(all_tokens, key=lambda t: t.id)

    parts: list[str] = []
    for current, following in zip(ordered, ordered[1:] + [None]):
        parts.append(current.text.strip())
        if following is None or following.id - current.id <= 1:
            continue

        skipped = [
            t
            for t in known
            if current.id < t.id < following.id and t.kind != TokenKind.WHITESPACE
        ]
        if not skipped:
            # Only whitespace between the two ids
            if any(current.id < t.id < following.id for t in known):
                continue
            parts.append(ellipsis)
        elif all(is_punctuation(t) for t in skipped):
            # Punctuation stays attached to the word before it
            parts[-1] += "".join(t.text.strip() for t in skipped)
        else:
            parts.append(ellipsis)

    return " ".join(p for p in parts if p).strip()
