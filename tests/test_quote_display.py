"""Tests for quote display reconstruction."""

from __future__ import annotations

from quotelink.matching.display import is_punctuation, render_quote
from quotelink.tokens.models import Token, TokenKind


def _tokens(document, ids):
    return [document.token_by_id(i) for i in ids]


class TestRenderQuote:
    """Tests for render_quote()."""

    def test_single_token_trimmed(self, original):
        assert render_quote(_tokens(original, [14]), original.all_tokens()) == "ἡμεῖς"

    def test_whitespace_gap_joins_with_space(self, original):
        text = render_quote(_tokens(original, [33, 35]), original.all_tokens())
        assert text == "ἀληθής ἐστιν"

    def test_word_gap_becomes_ellipsis(self, original):
        text = render_quote(_tokens(original, [14, 18, 31]), original.all_tokens())
        assert text == "ἡμεῖς ... μαρτυροῦμεν ... ἡμῶν"

    def test_punctuation_gap_spliced(self, original):
        text = render_quote(_tokens(original, [18, 21]), original.all_tokens())
        assert text == "μαρτυροῦμεν, καὶ"

    def test_target_language(self, target):
        text = render_quote(_tokens(target, [1020, 1023]), target.all_tokens())
        assert text == "testify, and"

    def test_unknown_gap_becomes_ellipsis(self):
        selected = [Token(id=1, text="We"), Token(id=5, text="true")]
        assert render_quote(selected, []) == "We ... true"

    def test_custom_ellipsis(self, original):
        text = render_quote(_tokens(original, [14, 18]), original.all_tokens(), ellipsis="…")
        assert text == "ἡμεῖς … μαρτυροῦμεν"

    def test_order_by_id_and_duplicates(self, original):
        text = render_quote(_tokens(original, [35, 33, 35]), original.all_tokens())
        assert text == "ἀληθής ἐστιν"

    def test_adjacent_ids(self):
        selected = [Token(id=1, text="is"), Token(id=2, text="true")]
        assert render_quote(selected, selected) == "is true"

    def test_empty(self):
        assert render_quote([], []) == ""


class TestIsPunctuation:
    """Tests for is_punctuation()."""

    def test_by_kind(self):
        assert is_punctuation(Token(id=1, text="·", kind=TokenKind.PUNCTUATION))

    def test_by_character_class(self):
        assert is_punctuation(Token(id=1, text=";"))
        assert is_punctuation(Token(id=1, text="”"))

    def test_word(self):
        assert not is_punctuation(Token(id=1, text="καὶ"))
