"""Pane controllers: the notes and scripture sides of the highlight exchange."""

from quotelink.panes.loading import LatestRequestGate
from quotelink.panes.notes import NotesPane, group_id_for
from quotelink.panes.scripture import ScripturePane, TokenRenderState

__all__ = [
    "LatestRequestGate",
    "NotesPane",
    "ScripturePane",
    "TokenRenderState",
    "group_id_for",
]
