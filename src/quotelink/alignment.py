"""Alignment index: token identity across original and target documents.

Original-language tokens are the canonical ids. Target-language tokens name
the original ids they translate in `aligned_to`. An original token may also
carry `aligned_to` ids naming the other original tokens it is grouped with
(one target word covering two original words).

The index is an owned object scoped to the currently displayed document
set; panes receive it explicitly.
"""

from __future__ import annotations

import logging
from typing import Iterable

from quotelink.tokens.models import ScriptureDocument, Token

logger = logging.getLogger(__name__)


class AlignmentIndex:
    """Bidirectional lookup between original ids and aligned tokens."""

    def __init__(self, documents: Iterable[ScriptureDocument] = ()):
        self._documents: dict[str, ScriptureDocument] = {}
        # resource id -> original id -> target token ids (position order)
        self._reverse: dict[str, dict[int, list[int]]] = {}
        # resource id -> group id -> original token ids naming it
        self._groups: dict[str, dict[int, set[int]]] = {}
        for document in documents:
            self.add_document(document)

    @staticmethod
    def _key(document: ScriptureDocument) -> str:
        return document.resource_id or f"{document.book}:{document.language}"

    def add_document(self, document: ScriptureDocument) -> None:
        """Register (or replace) a document and rebuild its lookups."""
        key = self._key(document)
        self._documents[key] = document

        reverse: dict[int, list[int]] = {}
        groups: dict[int, set[int]] = {}
        for token in document.all_tokens():
            for original_id in token.aligned_to:
                if document.is_original:
                    groups.setdefault(original_id, set()).add(token.id)
                else:
                    reverse.setdefault(original_id, []).append(token.id)
        self._reverse[key] = reverse
        self._groups[key] = groups
        logger.debug(
            f"Indexed {key}: {len(reverse)} aligned originals, {len(groups)} groups"
        )

    def remove_document(self, document: ScriptureDocument) -> None:
        key = self._key(document)
        self._documents.pop(key, None)
        self._reverse.pop(key, None)
        self._groups.pop(key, None)

    def clear(self) -> None:
        self._documents.clear()
        self._reverse.clear()
        self._groups.clear()

    @property
    def documents(self) -> list[ScriptureDocument]:
        return list(self._documents.values())

    def aligned_ids(self, token: Token, document: ScriptureDocument) -> set[int]:
        """Original-language ids a token stands for.

        Original role: the token itself, its declared group ids, and every
        other token in the document that names one of those ids.
        Target role: the ids in its own `aligned_to`.
        """
        if not document.is_original:
            return set(token.aligned_to)

        ids = {token.id, *token.aligned_to}
        groups = self._groups.get(self._key(document))
        if groups is None:
            # Document not indexed; scan it directly
            for other in document.all_tokens():
                if ids.intersection(other.aligned_to):
                    ids.add(other.id)
            return ids

        for group_id in list(ids):
            ids.update(groups.get(group_id, ()))
        return ids

    def should_highlight(
        self,
        token: Token,
        target_id: int,
        document: ScriptureDocument,
        target_aligned: Iterable[int] = (),
    ) -> bool:
        """True if `token` shows the same original word as `target_id`.

        `target_aligned` carries the clicked token's own aligned ids, so a
        click in a target pane (whose token id is not an original id) still
        finds the original tokens and their other translations.
        """
        wanted = {target_id, *target_aligned}
        if document.is_original:
            return token.id in wanted
        return bool(wanted.intersection(token.aligned_to))

    def target_tokens_for(
        self, original_ids: Iterable[int], document: ScriptureDocument
    ) -> list[Token]:
        """Target tokens aligned to any of the original ids, in position order."""
        if document.is_original:
            ids = set(original_ids)
            return [t for t in document.all_tokens() if t.id in ids]

        reverse = self._reverse.get(self._key(document))
        if reverse is None:
            ids = set(original_ids)
            return [t for t in document.all_tokens() if ids.intersection(t.aligned_to)]

        found: set[int] = set()
        for original_id in original_ids:
            found.update(reverse.get(original_id, ()))
        tokens = [document.token_by_id(i) for i in sorted(found)]
        return [t for t in tokens if t is not None]

    def translate_ids(
        self, original_ids: Iterable[int], document: ScriptureDocument
    ) -> frozenset[int]:
        """Map original ids onto the token ids of `document`."""
        original_ids = list(original_ids)
        if document.is_original:
            expanded: set[int] = set()
            for token_id in original_ids:
                token = document.token_by_id(token_id)
                if token is None:
                    expanded.add(token_id)
                else:
                    expanded.update(self.aligned_ids(token, document))
            return frozenset(expanded)
        return frozenset(t.id for t in self.target_tokens_for(original_ids, document))
