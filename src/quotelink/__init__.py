"""quotelink: note quote alignment and cross-pane highlighting."""

__version__ = "0.1.0"
