"""Notes pane controller.

Owns the token groups of one notes (or questions, or word links) resource.
It matches every visible note against the original-language text,
broadcasts the resulting groups as a debounced state message, and rebuilds
each note's quote in the target language from the scripture tokens other
panes publish.

A note that fails to match only loses its highlight; the other notes of
the verse are matched and broadcast as usual.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable

from quotelink.config import Settings
from quotelink.highlight import SourceKind, assign_color_indices
from quotelink.matching.display import render_quote
from quotelink.matching.matcher import QuoteMatcher, QuoteMatchResult
from quotelink.messages.debounce import Debouncer
from quotelink.messages.models import (
    BaseMessage,
    ClearHighlightsEvent,
    NoteSelectionEvent,
    NoteTokenGroup,
    ScriptureTokensClear,
    ScriptureTokensUpsert,
    TokenClickEvent,
    TokenGroupsClear,
    TokenGroupsUpsert,
    WireReference,
)
from quotelink.notes import TranslationNote, notes_in_range, parse_occurrence
from quotelink.panes.loading import LatestRequestGate
from quotelink.reference import QuoteScope
from quotelink.tokens.models import Token, TokenKind

if TYPE_CHECKING:
    from quotelink.messages.channel import BroadcastChannel
    from quotelink.tokens.models import VerseProvider

logger = logging.getLogger(__name__)


def group_id_for(source_id: str, note_key: str) -> str:
    """Group id shared by the broadcasting pane and every receiver."""
    return f"{source_id}/{note_key}"


class NotesPane:
    """Controller for one notes resource pane."""

    def __init__(
        self,
        source_id: str,
        channel: "BroadcastChannel",
        settings: Settings | None = None,
        matcher: QuoteMatcher | None = None,
        source_kind: SourceKind = SourceKind.NOTES,
    ):
        self.source_id = source_id
        self.channel = channel
        self.settings = settings or Settings()
        self.matcher = matcher or QuoteMatcher.from_settings(self.settings)
        self.source_kind = source_kind

        self.book = ""
        self.visible: QuoteScope | None = None
        self.notes: list[TranslationNote] = []
        self.filtered: list[TranslationNote] = []
        self.matches: dict[str, QuoteMatchResult] = {}
        self.color_indices: dict[str, int] = {}

        # Original-language ids of the latest clicked token
        self.token_filter: frozenset[int] | None = None
        self._scripture: ScriptureTokensUpsert | None = None

        self._debouncer = Debouncer(self.publish_groups, self.settings.debounce_seconds)
        self._loads: LatestRequestGate[list[TranslationNote]] = LatestRequestGate(
            name=f"notes:{source_id}"
        )

    # --- matching ---

    def show(
        self,
        book: str,
        notes: list[TranslationNote],
        original: "VerseProvider",
        visible: QuoteScope | None = None,
    ) -> dict[str, QuoteMatchResult]:
        """Match every note in the visible range against the original text.

        Recomputes from scratch; nothing is carried over from the previous
        navigation context.
        """
        self.book = book
        self.visible = visible
        self.notes = list(notes)
        self.filtered = notes_in_range(self.notes, book, visible)

        self.matches = {}
        for note in self.filtered:
            if not note.has_quote:
                continue
            result = self.matcher.resolve_note(note, book, original)
            if result.success:
                logger.debug(
                    f"Matched note {note.key}: {len(result.total_tokens)} tokens"
                )
            else:
                logger.warning(
                    f"No quote match for note {note.key} ({note.reference}): {result.error}"
                )
            self.matches[note.key] = result

        # Colors come from the navigation-filtered order, before any token
        # filter, so they stay put while the user clicks around.
        self.color_indices = assign_color_indices(
            [n.key for n in self.filtered],
            [n.is_colorable for n in self.filtered],
            self.settings.palette_size,
        )
        return self.matches

    async def update(
        self,
        book: str,
        notes: list[TranslationNote],
        original: "VerseProvider",
        visible: QuoteScope | None = None,
    ) -> dict[str, QuoteMatchResult]:
        """Match and schedule a debounced broadcast of the new groups."""
        matches = self.show(book, notes, original, visible)
        self._debouncer.trigger()
        return matches

    async def load(
        self,
        book: str,
        visible: QuoteScope | None,
        fetch: Callable[[], Awaitable[list[TranslationNote]]],
        original: "VerseProvider",
    ) -> bool:
        """Fetch notes and apply them unless a newer load superseded this one.

        Returns:
            True if the response was applied
        """
        notes = await self._loads.run((book, visible), fetch)
        if notes is None:
            return False
        await self.update(book, notes, original, visible)
        return True

    def navigate(self, book: str, visible: QuoteScope | None) -> None:
        """Mark navigation so in-flight loads for the old context are dropped."""
        self._loads.navigate((book, visible))

    def result_for(self, note_key: str) -> QuoteMatchResult | None:
        return self.matches.get(note_key)

    def note(self, note_key: str) -> TranslationNote | None:
        for note in self.notes:
            if note.key == note_key:
                return note
        return None

    # --- broadcasting ---

    def build_groups(self) -> list[NoteTokenGroup]:
        groups = []
        for note in self.filtered:
            result = self.matches.get(note.key)
            if result is None or not result.success or not result.total_tokens:
                continue
            groups.append(
                NoteTokenGroup(
                    note_id=note.key,
                    reference=note.reference,
                    quote=note.quote,
                    occurrence=parse_occurrence(note.occurrence),
                    token_ids=result.token_ids,
                    color_index=self.color_indices.get(note.key),
                )
            )
        return groups

    def build_message(self) -> TokenGroupsUpsert | TokenGroupsClear:
        groups = self.build_groups()
        if not groups or self.visible is None:
            return TokenGroupsClear(source_id=self.source_id)
        return TokenGroupsUpsert(
            source_id=self.source_id,
            reference=WireReference.from_scope(self.visible),
            source_kind=self.source_kind,
            groups=groups,
        )

    async def publish_groups(self) -> BaseMessage:
        message = self.build_message()
        delivered = await self.channel.publish(message)
        logger.debug(
            f"{self.source_id}: sent {message.kind} to {delivered} subscriber(s)"
        )
        return message

    async def flush(self) -> None:
        """Send any debounced broadcast immediately."""
        await self._debouncer.flush()

    async def select(self, note_key: str) -> NoteSelectionEvent:
        """Focus a note's group in every scripture pane."""
        note = self.note(note_key)
        if note is None:
            raise KeyError(f"Unknown note: {note_key}")
        event = NoteSelectionEvent(
            source_id=self.source_id,
            note_id=note.key,
            group_id=group_id_for(self.source_id, note.key),
            quote=note.quote,
            reference=note.reference,
        )
        await self.channel.publish(event)
        return event

    async def unmount(self) -> None:
        """Final superseding clear; always sent, even if nothing was shown."""
        self._debouncer.cancel()
        await self.channel.publish(TokenGroupsClear(source_id=self.source_id))

    # --- receiving ---

    def receive(self, message: BaseMessage) -> None:
        if isinstance(message, ScriptureTokensUpsert):
            self._scripture = message
        elif isinstance(message, ScriptureTokensClear):
            if self._scripture and self._scripture.source_id == message.source_id:
                self._scripture = None
        elif isinstance(message, TokenClickEvent):
            ids = set(message.aligned_ids)
            if message.source_is_original:
                ids.add(message.token_id)
            self.token_filter = frozenset(ids)
        elif isinstance(message, ClearHighlightsEvent):
            self.token_filter = None
        elif isinstance(message, (TokenGroupsUpsert, TokenGroupsClear, NoteSelectionEvent)):
            # Other panes' groups and selections do not affect this pane
            pass
        else:
            raise TypeError(f"Unhandled message type: {type(message).__name__}")

    def filter_by_ids(self, original_ids: frozenset[int] | set[int]) -> list[TranslationNote]:
        """Notes whose matched tokens include any of the original ids."""
        kept = []
        for note in self.filtered:
            result = self.matches.get(note.key)
            if result and result.success and original_ids.intersection(result.token_ids):
                kept.append(note)
        return kept

    def filter_by_token(
        self, token_id: int, aligned_ids: frozenset[int] | set[int] = frozenset()
    ) -> list[TranslationNote]:
        """Notes whose matched tokens include an original token or its alignments."""
        return self.filter_by_ids({token_id, *aligned_ids})

    @property
    def visible_notes(self) -> list[TranslationNote]:
        """Filtered notes, narrowed by the latest token click if any."""
        if self.token_filter is None:
            return list(self.filtered)
        return self.filter_by_ids(self.token_filter)

    def target_quote(self, note_key: str) -> str | None:
        """The note's quote rebuilt from the target-language tokens received.

        None when there is no successful match or no target tokens yet.
        """
        result = self.matches.get(note_key)
        if self._scripture is None or result is None or not result.success:
            return None

        tokens = [
            Token(
                id=t.id,
                text=t.text,
                kind=_wire_kind(t.kind),
                aligned_to=tuple(t.aligned_to),
            )
            for t in self._scripture.tokens
        ]
        original_ids = set(result.token_ids)
        if self._scripture.is_original:
            aligned = [t for t in tokens if t.id in original_ids]
        else:
            aligned = [t for t in tokens if original_ids.intersection(t.aligned_to)]
        if not aligned:
            return None
        return render_quote(aligned, tokens, ellipsis=self.settings.ellipsis) or None


def _wire_kind(kind: str) -> TokenKind:
    try:
        return TokenKind(kind)
    except ValueError:
        return TokenKind.WORD
