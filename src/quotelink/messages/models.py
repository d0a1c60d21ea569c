"""Pydantic models for messages exchanged between resource panes.

Two closed families, each a discriminated union on `kind`:

- State messages are retained per (source_id, state_key); a newer message
  from the same source supersedes the previous one unconditionally.
- Event messages are one-shot and never retained.

Clearing is its own variant (TokenGroupsClear, ScriptureTokensClear) rather
than an upsert with an empty list.
"""

from __future__ import annotations

import threading
import time
from typing import Annotated, Any, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from quotelink.highlight import SourceKind
from quotelink.reference import QuoteScope

# Retention keys for state messages
TOKEN_GROUPS_STATE_KEY = "current-notes-token-groups"
SCRIPTURE_TOKENS_STATE_KEY = "current-scripture-tokens"


class MonotonicClock:
    """Millisecond timestamps that never repeat or go backwards."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            current = max(time.time_ns() // 1_000_000, self._last + 1)
            self._last = current
            return current


_clock = MonotonicClock()


def next_timestamp() -> int:
    return _clock.now()


# --- Payload Models ---


class WireReference(BaseModel):
    """Verse range a state message was computed for."""

    book: str
    chapter: int
    verse: int
    end_chapter: Optional[int] = None
    end_verse: Optional[int] = None

    @classmethod
    def from_scope(cls, scope: QuoteScope) -> "WireReference":
        return cls(
            book=scope.book,
            chapter=scope.start_chapter,
            verse=scope.start_verse,
            end_chapter=scope.end_chapter,
            end_verse=scope.end_verse,
        )

    def to_scope(self) -> QuoteScope:
        return QuoteScope(
            self.book,
            self.chapter,
            self.verse,
            self.end_chapter or self.chapter,
            self.end_verse or self.verse,
        )


class NoteTokenGroup(BaseModel):
    """Original-language tokens one note's quote resolved to."""

    note_id: str
    reference: str = ""
    quote: str
    occurrence: int = Field(1, ge=1)
    token_ids: List[int] = Field(default_factory=list)
    color_index: Optional[int] = Field(None, ge=0)


class WireToken(BaseModel):
    """Token as broadcast by a scripture pane."""

    id: int
    text: str
    kind: str = "word"
    aligned_to: List[int] = Field(default_factory=list)


# --- Base ---


class BaseMessage(BaseModel):
    """Fields every message carries."""

    source_id: str
    timestamp: int = Field(default_factory=next_timestamp)

    lifecycle: ClassVar[str] = ""


class StateMessageBase(BaseMessage):
    lifecycle: ClassVar[str] = "state"
    state_key: ClassVar[str] = ""


class EventMessageBase(BaseMessage):
    lifecycle: ClassVar[str] = "event"


# --- State Messages ---


class TokenGroupsUpsert(StateMessageBase):
    """Current note token groups for a verse range."""

    state_key: ClassVar[str] = TOKEN_GROUPS_STATE_KEY

    kind: Literal["token-groups.upsert"] = "token-groups.upsert"
    reference: WireReference
    source_kind: SourceKind = SourceKind.NOTES
    groups: List[NoteTokenGroup] = Field(default_factory=list)


class TokenGroupsClear(StateMessageBase):
    """Everything this source sent before is void."""

    state_key: ClassVar[str] = TOKEN_GROUPS_STATE_KEY

    kind: Literal["token-groups.clear"] = "token-groups.clear"


class ScriptureTokensUpsert(StateMessageBase):
    """Tokens a scripture pane currently shows, for target quote rebuilding."""

    state_key: ClassVar[str] = SCRIPTURE_TOKENS_STATE_KEY

    kind: Literal["scripture-tokens.upsert"] = "scripture-tokens.upsert"
    reference: WireReference
    language: str
    is_original: bool = False
    tokens: List[WireToken] = Field(default_factory=list)


class ScriptureTokensClear(StateMessageBase):
    state_key: ClassVar[str] = SCRIPTURE_TOKENS_STATE_KEY

    kind: Literal["scripture-tokens.clear"] = "scripture-tokens.clear"


# --- Event Messages ---


class TokenClickEvent(EventMessageBase):
    """User clicked a token in some pane."""

    kind: Literal["token.click"] = "token.click"
    token_id: int
    text: str
    aligned_ids: List[int] = Field(default_factory=list)
    verse_ref: str = ""
    source_is_original: bool = True
    """False when token_id belongs to a target-language document."""


class NoteSelectionEvent(EventMessageBase):
    """User selected a note; its group becomes the focused one."""

    kind: Literal["note.selection"] = "note.selection"
    note_id: str
    group_id: str
    quote: str = ""
    reference: str = ""


class ClearHighlightsEvent(EventMessageBase):
    """Drop any click highlight and focused group."""

    kind: Literal["highlights.clear"] = "highlights.clear"


StateMessage = Annotated[
    Union[TokenGroupsUpsert, TokenGroupsClear, ScriptureTokensUpsert, ScriptureTokensClear],
    Field(discriminator="kind"),
]

EventMessage = Annotated[
    Union[TokenClickEvent, NoteSelectionEvent, ClearHighlightsEvent],
    Field(discriminator="kind"),
]

Message = Annotated[
    Union[
        TokenGroupsUpsert,
        TokenGroupsClear,
        ScriptureTokensUpsert,
        ScriptureTokensClear,
        TokenClickEvent,
        NoteSelectionEvent,
        ClearHighlightsEvent,
    ],
    Field(discriminator="kind"),
]

_message_adapter: TypeAdapter = TypeAdapter(Message)


def parse_message(data: dict[str, Any]) -> BaseMessage:
    """Validate a wire payload into its message class.

    Raises:
        pydantic.ValidationError: Unknown kind or missing fields
    """
    return _message_adapter.validate_python(data)


def is_state(message: BaseMessage) -> bool:
    return isinstance(message, StateMessageBase)
