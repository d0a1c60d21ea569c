"""Tests for the alignment index."""

from __future__ import annotations

from quotelink.alignment import AlignmentIndex


class TestAlignedIds:
    """aligned_ids() by language role."""

    def test_original_token_is_itself(self, alignment, original):
        assert alignment.aligned_ids(original.token_by_id(14), original) == {14}

    def test_original_group_from_declaring_token(self, alignment, original):
        """ἡ names μαρτυρία as its group; both ids come back."""
        assert alignment.aligned_ids(original.token_by_id(27), original) == {27, 29}

    def test_original_group_from_named_token(self, alignment, original):
        """μαρτυρία is named by ἡ, so the group is found from either side."""
        assert alignment.aligned_ids(original.token_by_id(29), original) == {27, 29}

    def test_unindexed_document_scans(self, original):
        index = AlignmentIndex()
        assert index.aligned_ids(original.token_by_id(29), original) == {27, 29}

    def test_target_token(self, alignment, target):
        assert alignment.aligned_ids(target.token_by_id(1033), target) == {27, 29}

    def test_unaligned_target_token(self, alignment, target):
        assert alignment.aligned_ids(target.token_by_id(1021), target) == set()


class TestShouldHighlight:
    """should_highlight() across panes."""

    def test_original_pane_same_id(self, alignment, original):
        assert alignment.should_highlight(original.token_by_id(18), 18, original)
        assert not alignment.should_highlight(original.token_by_id(14), 18, original)

    def test_target_pane_aligned_word(self, alignment, target):
        assert alignment.should_highlight(target.token_by_id(1020), 18, target)
        assert not alignment.should_highlight(target.token_by_id(1016), 18, target)

    def test_target_click_reaches_original(self, alignment, original):
        """A click in a target pane carries the original ids it aligns to."""
        assert alignment.should_highlight(
            original.token_by_id(23), 1027, original, target_aligned=[23]
        )


class TestTranslateIds:
    """Mapping original ids onto another document."""

    def test_target_tokens_for(self, alignment, target):
        tokens = alignment.target_tokens_for([14, 18, 31], target)
        assert [t.text for t in tokens] == ["We", "testify", "our"]

    def test_translate_to_target(self, alignment, target):
        assert alignment.translate_ids([33, 35], target) == frozenset({1035, 1037})

    def test_translate_to_original_expands_groups(self, alignment, original):
        assert alignment.translate_ids([29], original) == frozenset({27, 29})

    def test_unknown_original_ids_kept(self, alignment, original):
        assert alignment.translate_ids([999], original) == frozenset({999})

    def test_no_alignment(self, alignment, target):
        assert alignment.translate_ids([16], target) == frozenset()


class TestIndexLifecycle:
    """Adding and removing documents."""

    def test_documents(self, alignment, original, target):
        assert {d.resource_id for d in alignment.documents} == {"ugnt_3jn", "ult_3jn"}

    def test_remove_falls_back_to_scan(self, alignment, target):
        alignment.remove_document(target)
        assert alignment.target_tokens_for([23], target)[0].text == "you"
        assert len(alignment.documents) == 1

    def test_clear(self, alignment):
        alignment.clear()
        assert alignment.documents == []
