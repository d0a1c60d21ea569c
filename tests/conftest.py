"""Shared fixtures: 3 John 1:11-12 in Greek and an aligned English text."""

from __future__ import annotations

from pathlib import Path

import pytest

from quotelink.alignment import AlignmentIndex
from quotelink.notes import load_notes_tsv
from quotelink.tokens.loader import load_document

FIXTURES = Path(__file__).parent / "fixtures"

UGNT_PATH = FIXTURES / "ugnt_3jn.json"
ULT_PATH = FIXTURES / "ult_3jn.json"
NOTES_PATH = FIXTURES / "tn_3jn.tsv"


@pytest.fixture
def original():
    """Greek 3JN 1:11-12."""
    return load_document(UGNT_PATH)


@pytest.fixture
def target():
    """English 3JN 1:11-12 aligned to the Greek ids."""
    return load_document(ULT_PATH)


@pytest.fixture
def alignment(original, target):
    return AlignmentIndex([original, target])


@pytest.fixture
def notes():
    return load_notes_tsv(NOTES_PATH)
