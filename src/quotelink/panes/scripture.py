"""Scripture pane controller.

Applies incoming token groups to the highlight registry, tracks the latest
token click, and answers how each token should render. Groups keep their
original-language ids in the registry; each token is mapped onto them
through the alignment index when it is rendered, so panes in different
languages can share one registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from quotelink.highlight import HighlightRegistry, TokenGroup
from quotelink.messages.models import (
    BaseMessage,
    ClearHighlightsEvent,
    NoteSelectionEvent,
    ScriptureTokensClear,
    ScriptureTokensUpsert,
    TokenClickEvent,
    TokenGroupsClear,
    TokenGroupsUpsert,
    WireReference,
    WireToken,
)
from quotelink.panes.notes import group_id_for
from quotelink.reference import QuoteScope, format_verse_ref

if TYPE_CHECKING:
    from quotelink.alignment import AlignmentIndex
    from quotelink.messages.channel import BroadcastChannel
    from quotelink.tokens.models import ScriptureDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenRenderState:
    """What a renderer needs to draw one token."""

    token_id: int
    highlighted: bool = False
    """Matches the latest token click."""

    group: TokenGroup | None = None
    color_index: int | None = None
    focused: bool = False


@dataclass(frozen=True)
class ClickTarget:
    token_id: int
    aligned_ids: tuple[int, ...]
    source_is_original: bool
    source_id: str


class ScripturePane:
    """Controller for one scripture resource pane."""

    def __init__(
        self,
        source_id: str,
        document: "ScriptureDocument",
        registry: HighlightRegistry,
        alignment: "AlignmentIndex",
        channel: "BroadcastChannel",
    ):
        self.source_id = source_id
        self.document = document
        self.registry = registry
        self.alignment = alignment
        self.channel = channel

        self.book = document.book
        self.chapter: int | None = None
        self.click_target: ClickTarget | None = None

    def navigate(self, book: str, chapter: int) -> None:
        """Reset highlight state when the visible book or chapter changes."""
        if (book, chapter) != (self.book, self.chapter):
            logger.debug(f"{self.source_id}: navigation to {book} {chapter}, resetting")
            self.registry.clear_all()
            self.click_target = None
        self.book = book
        self.chapter = chapter

    # --- receiving ---

    def receive(self, message: BaseMessage) -> None:
        if isinstance(message, TokenGroupsUpsert):
            self._apply_groups(message)
        elif isinstance(message, TokenGroupsClear):
            self.registry.apply_origin(message.source_id, [], message.timestamp)
        elif isinstance(message, TokenClickEvent):
            self.registry.set_active_group(None)
            self.click_target = ClickTarget(
                token_id=message.token_id,
                aligned_ids=tuple(message.aligned_ids),
                source_is_original=message.source_is_original,
                source_id=message.source_id,
            )
        elif isinstance(message, NoteSelectionEvent):
            if self.registry.get(message.group_id) is None:
                logger.debug(f"Selection of unknown group {message.group_id} ignored")
                return
            self.registry.set_active_group(message.group_id)
            self.click_target = None
        elif isinstance(message, ClearHighlightsEvent):
            self.registry.set_active_group(None)
            self.click_target = None
        elif isinstance(message, (ScriptureTokensUpsert, ScriptureTokensClear)):
            # Consumed by notes panes
            pass
        else:
            raise TypeError(f"Unhandled message type: {type(message).__name__}")

    def _apply_groups(self, message: TokenGroupsUpsert) -> None:
        if message.reference.book and self.book and message.reference.book != self.book:
            logger.debug(
                f"Ignoring groups for {message.reference.book} from {message.source_id}"
            )
            return

        groups = [
            TokenGroup(
                id=group_id_for(message.source_id, wire.note_id),
                source_kind=message.source_kind,
                source_id=group_id_for(message.source_id, wire.note_id),
                token_ids=frozenset(wire.token_ids),
                label=wire.quote,
                color_index=wire.color_index,
                origin=message.source_id,
            )
            for wire in message.groups
        ]
        self.registry.apply_origin(message.source_id, groups, message.timestamp)

    # --- user actions ---

    async def click(self, token_id: int) -> TokenClickEvent:
        """Highlight a token here and tell every other pane."""
        token = self.document.token_by_id(token_id)
        if token is None:
            raise KeyError(f"Token {token_id} not in {self.document.book}")

        aligned = self.alignment.aligned_ids(token, self.document)
        aligned.discard(token.id)
        verse = self.document.verse_of(token_id)
        verse_ref = (
            format_verse_ref(self.document.book, verse.chapter, verse.verse)
            if verse
            else ""
        )

        event = TokenClickEvent(
            source_id=self.source_id,
            token_id=token.id,
            text=token.text,
            aligned_ids=sorted(aligned),
            verse_ref=verse_ref,
            source_is_original=self.document.is_original,
        )
        # A word click drops any focused note
        self.receive(event)
        await self.channel.publish(event)
        return event

    async def clear_highlights(self) -> None:
        event = ClearHighlightsEvent(source_id=self.source_id)
        self.receive(event)
        await self.channel.publish(event)

    async def publish_tokens(self, scope: QuoteScope) -> ScriptureTokensUpsert:
        """Share the tokens on screen so notes panes can rebuild quotes."""
        message = ScriptureTokensUpsert(
            source_id=self.source_id,
            reference=WireReference.from_scope(scope),
            language=self.document.language,
            is_original=self.document.is_original,
            tokens=[
                WireToken(
                    id=t.id,
                    text=t.text,
                    kind=t.kind.value,
                    aligned_to=list(t.aligned_to),
                )
                for t in self.document.tokens_in(scope)
            ],
        )
        await self.channel.publish(message)
        return message

    async def unmount(self) -> None:
        await self.channel.publish(ScriptureTokensClear(source_id=self.source_id))

    # --- rendering queries ---

    def is_click_highlighted(self, token_id: int) -> bool:
        target = self.click_target
        token = self.document.token_by_id(token_id)
        if target is None or token is None:
            return False

        if target.source_is_original:
            return self.alignment.should_highlight(
                token, target.token_id, self.document, target.aligned_ids
            )
        # Target-language click: its own id is only meaningful in its own pane
        if target.source_id == self.source_id and token.id == target.token_id:
            return True
        return any(
            self.alignment.should_highlight(token, original_id, self.document)
            for original_id in target.aligned_ids
        )

    def aligned_ids_of(self, token_id: int) -> set[int]:
        """Original-language ids a token of this pane stands for."""
        token = self.document.token_by_id(token_id)
        if token is None:
            return {token_id} if self.document.is_original else set()
        return self.alignment.aligned_ids(token, self.document)

    def render_state(self, token_id: int) -> TokenRenderState:
        resolution = self.registry.color_for(token_id, self.aligned_ids_of(token_id))
        return TokenRenderState(
            token_id=token_id,
            highlighted=self.is_click_highlighted(token_id),
            group=resolution.group,
            color_index=resolution.color_index,
            focused=resolution.focused,
        )

    def group_token_ids(self, group_id: str) -> frozenset[int]:
        """Token ids of this pane covered by a group, e.g. to scroll to it."""
        group = self.registry.get(group_id)
        if group is None:
            return frozenset()
        return self.alignment.translate_ids(group.token_ids, self.document)

    def highlighted_ids(self) -> list[int]:
        """Every token id currently matching the click target."""
        return [t.id for t in self.document.all_tokens() if self.is_click_highlighted(t.id)]
