"""Highlight group registry.

Holds the colored token groups contributed by notes, clicks and other
sources for the currently displayed range, and answers which single group
(and color) a token renders with.

Rules:
- A group is replaced, never merged, when a group with the same id or the
  same (source_kind, source_id) arrives.
- An empty group supersedes the prior group for its source and removes it.
  Groups never expire on their own.
- Color indices are assigned once, from the ordered list of colorable
  sources, and are never recomputed from the live group list.
- The active group wins on overlap; otherwise the earliest-added group.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_PALETTE_SIZE = 10


class SourceKind(str, Enum):
    """Who contributed a group."""

    NOTES = "notes"
    SELECTION = "selection"
    OTHER = "other"


class GroupLifecycle(str, Enum):
    """Displayed-group lifecycle states."""

    ABSENT = "absent"
    PASSIVE = "passive"
    """Rendered, not focused."""

    FOCUSED = "focused"
    """The user clicked the group's source."""

    SUPERSEDED = "superseded"
    """An empty group for the same source arrived; absent after its next update."""


@dataclass(frozen=True)
class TokenGroup:
    """A named, colored set of token ids from one source."""

    id: str
    source_kind: SourceKind
    source_id: str
    token_ids: frozenset[int] = frozenset()
    label: str = ""
    color_index: int | None = None
    origin: str = ""
    """Pane that published the group; empty for locally created groups."""

    @property
    def is_empty(self) -> bool:
        return not self.token_ids

    @property
    def source_key(self) -> tuple[SourceKind, str]:
        return (self.source_kind, self.source_id)

    def with_tokens(self, token_ids: Iterable[int]) -> "TokenGroup":
        return replace(self, token_ids=frozenset(token_ids))

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "source_kind": self.source_kind.value,
            "source_id": self.source_id,
            "token_ids": sorted(self.token_ids),
            "label": self.label,
            "color_index": self.color_index,
        }


@dataclass(frozen=True)
class ColorResolution:
    """How one token renders."""

    token_id: int
    groups: tuple[TokenGroup, ...] = ()
    group: TokenGroup | None = None
    color_index: int | None = None
    focused: bool = False

    @property
    def highlighted(self) -> bool:
        return self.group is not None


def assign_color_indices(
    keys: Iterable[str],
    colorable: Iterable[bool],
    palette_size: int = DEFAULT_PALETTE_SIZE,
) -> dict[str, int]:
    """Color index per key from its position among colorable keys.

    Args:
        keys: Source keys in display order (e.g., filtered note keys)
        colorable: Parallel flags; non-colorable keys get no color
        palette_size: Number of colors to cycle through

    Returns:
        key -> index mod palette_size
    """
    indices: dict[str, int] = {}
    position = 0
    for key, is_colorable in zip(keys, colorable):
        if not is_colorable:
            continue
        indices[key] = position % palette_size
        position += 1
    return indices


class HighlightRegistry:
    """Token groups for the currently displayed range.

    One instance per displayed document, shared by every pane that shows
    it. Group token ids are original-language (aligned) ids; each pane maps
    its own tokens onto them when rendering. Only the pane owning a
    source_id writes that source's groups.
    """

    def __init__(self, palette_size: int = DEFAULT_PALETTE_SIZE):
        if palette_size < 1:
            raise ValueError("palette_size must be >= 1")
        self.palette_size = palette_size
        self._groups: dict[str, TokenGroup] = {}
        self._by_token: dict[int, list[str]] = {}
        self._order: dict[str, int] = {}
        self._counter = 0
        # superseded group id -> origin that superseded it
        self._superseded: dict[str, str] = {}
        self._applied: dict[str, int] = {}
        self._color_cache: dict[str, int] = {}
        self.active_group_id: str | None = None

    # --- mutation ---

    def add_group(self, group: TokenGroup) -> None:
        """Insert or replace a group; an empty group supersedes its source."""
        replaced = [
            g.id
            for g in self._groups.values()
            if g.id == group.id or g.source_key == group.source_key
        ]
        for group_id in replaced:
            self._remove(group_id)

        if group.is_empty:
            for group_id in replaced or [group.id]:
                self._superseded[group_id] = group.origin
            logger.debug(
                f"Superseded {group.source_kind.value}:{group.source_id} "
                f"({len(replaced)} group(s))"
            )
            return

        if group.color_index is None and group.id in self._color_cache:
            group = replace(group, color_index=self._color_cache[group.id])
        elif group.color_index is not None:
            self._color_cache[group.id] = group.color_index

        self._superseded.pop(group.id, None)
        self._groups[group.id] = group
        self._counter += 1
        self._order[group.id] = self._counter
        for token_id in group.token_ids:
            self._by_token.setdefault(token_id, []).append(group.id)

    def apply_origin(
        self,
        origin: str,
        groups: Iterable[TokenGroup],
        timestamp: int | None = None,
    ) -> bool:
        """Replace every group a pane published with `groups`.

        An empty iterable clears everything that pane sent before. Groups
        the origin's previous update superseded become absent. When
        `timestamp` is given, an update no newer than the last one applied
        for the origin is skipped, so panes sharing this registry can all
        apply the same message.

        Returns:
            True if the update was applied
        """
        if timestamp is not None:
            last = self._applied.get(origin)
            if last is not None and timestamp <= last:
                return False
            self._applied[origin] = timestamp

        for group_id in [i for i, o in self._superseded.items() if o == origin]:
            del self._superseded[group_id]

        groups = list(groups)
        stale = [g.id for g in self._groups.values() if g.origin == origin]
        for group_id in stale:
            self._remove(group_id)
        incoming = {g.id for g in groups}
        for group_id in stale:
            if group_id not in incoming:
                self._superseded[group_id] = origin
        for group in groups:
            self.add_group(group)
        return True

    def clear_groups(self, source_kind: SourceKind) -> None:
        """Remove every group of one source kind."""
        for group_id in [g.id for g in self._groups.values() if g.source_kind == source_kind]:
            self._remove(group_id)
        logger.debug(f"Cleared {source_kind.value} groups")

    def clear_all(self) -> None:
        self._groups.clear()
        self._by_token.clear()
        self._order.clear()
        self._superseded.clear()
        self._applied.clear()
        self._color_cache.clear()
        self.active_group_id = None

    def set_active_group(self, group_id: str | None) -> None:
        """Focus one group (or none). Unknown ids raise KeyError."""
        if group_id is not None and group_id not in self._groups:
            raise KeyError(f"Unknown token group: {group_id}")
        self.active_group_id = group_id

    def _remove(self, group_id: str) -> None:
        group = self._groups.pop(group_id, None)
        if group is None:
            return
        self._order.pop(group_id, None)
        for token_id in group.token_ids:
            members = self._by_token.get(token_id)
            if members is None:
                continue
            members[:] = [m for m in members if m != group_id]
            if not members:
                del self._by_token[token_id]
        if self.active_group_id == group_id:
            self.active_group_id = None

    # --- queries ---

    def get(self, group_id: str) -> TokenGroup | None:
        return self._groups.get(group_id)

    @property
    def groups(self) -> list[TokenGroup]:
        """Groups in insertion order."""
        return sorted(self._groups.values(), key=lambda g: self._order[g.id])

    def groups_for(self, token_id: int) -> list[TokenGroup]:
        return [self._groups[i] for i in self._by_token.get(token_id, [])]

    def groups_for_aligned(self, aligned_ids: Iterable[int]) -> list[TokenGroup]:
        """Groups containing any of the aligned ids, earliest-added first."""
        found = {i for token_id in aligned_ids for i in self._by_token.get(token_id, ())}
        return sorted((self._groups[i] for i in found), key=lambda g: self._order[g.id])

    def color_for(
        self, token_id: int, aligned_ids: Iterable[int] | None = None
    ) -> ColorResolution:
        """Resolve the single group and color a token renders with.

        `aligned_ids` are the original-language ids the token stands for;
        without them the token id itself is looked up.
        """
        if aligned_ids is None:
            matched = self.groups_for(token_id)
        else:
            matched = self.groups_for_aligned(aligned_ids)
        if not matched:
            return ColorResolution(token_id=token_id)

        chosen = matched[0]
        focused = False
        if self.active_group_id is not None:
            for group in matched:
                if group.id == self.active_group_id:
                    chosen = group
                    focused = True
                    break

        color = chosen.color_index
        if color is not None:
            color %= self.palette_size
        return ColorResolution(
            token_id=token_id,
            groups=tuple(matched),
            group=chosen,
            color_index=color,
            focused=focused,
        )

    def lifecycle(self, group_id: str) -> GroupLifecycle:
        if group_id in self._groups:
            if group_id == self.active_group_id:
                return GroupLifecycle.FOCUSED
            return GroupLifecycle.PASSIVE
        if group_id in self._superseded:
            return GroupLifecycle.SUPERSEDED
        return GroupLifecycle.ABSENT
