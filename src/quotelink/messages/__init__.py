"""Broadcast message contract between resource panes.

State messages (retained, latest wins per source):
- TokenGroupsUpsert / TokenGroupsClear
- ScriptureTokensUpsert / ScriptureTokensClear

Event messages (one-shot):
- TokenClickEvent
- NoteSelectionEvent
- ClearHighlightsEvent
"""

from quotelink.messages.channel import BroadcastChannel, Subscription
from quotelink.messages.debounce import Debouncer
from quotelink.messages.models import (
    SCRIPTURE_TOKENS_STATE_KEY,
    TOKEN_GROUPS_STATE_KEY,
    BaseMessage,
    ClearHighlightsEvent,
    EventMessage,
    Message,
    NoteSelectionEvent,
    NoteTokenGroup,
    ScriptureTokensClear,
    ScriptureTokensUpsert,
    StateMessage,
    TokenClickEvent,
    TokenGroupsClear,
    TokenGroupsUpsert,
    WireReference,
    WireToken,
    is_state,
    next_timestamp,
    parse_message,
)

__all__ = [
    # Transport
    "BroadcastChannel",
    "Debouncer",
    "Subscription",
    # Models
    "BaseMessage",
    "ClearHighlightsEvent",
    "EventMessage",
    "Message",
    "NoteSelectionEvent",
    "NoteTokenGroup",
    "SCRIPTURE_TOKENS_STATE_KEY",
    "ScriptureTokensClear",
    "ScriptureTokensUpsert",
    "StateMessage",
    "TOKEN_GROUPS_STATE_KEY",
    "TokenClickEvent",
    "TokenGroupsClear",
    "TokenGroupsUpsert",
    "WireReference",
    "WireToken",
    "is_state",
    "next_timestamp",
    "parse_message",
]
