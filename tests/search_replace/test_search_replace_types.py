"""Tests for search/replace data types."""

from search_replace.search_replace_types import (
    DiffBlock,
    Hunk,
    HunkDecision,
    LocatedBlock,
    LocationResult,
    MatchType,
    UsedRange,
)


class TestMatchType:
    """Test match tier properties."""

    def test_priority_order(self):
        """Test that better tiers have higher priority."""
        assert MatchType.EXACT.priority > MatchType.EXACT_WHITESPACE.priority
        assert MatchType.PUNCTUATION.priority > MatchType.CASE_INSENSITIVE.priority
        assert MatchType.CASE_INSENSITIVE.priority > MatchType.FUZZY_HIGH.priority
        assert MatchType.NO_MATCH.priority == 0

    def test_is_fuzzy(self):
        """Test which tiers count as fuzzy."""
        assert not MatchType.EXACT.is_fuzzy
        assert not MatchType.CASE_INSENSITIVE.is_fuzzy
        assert MatchType.FUZZY_HIGH.is_fuzzy
        assert MatchType.NO_MATCH.is_fuzzy


class TestDiffBlock:
    """Test DiffBlock properties."""

    def test_content_joins_lines(self):
        """Test joined search and replace content."""
        block = DiffBlock(id="Block 1", search_lines=("a", "b"), replace_lines=("c",))

        assert block.search_content == "a\nb"
        assert block.replace_content == "c"
        assert not block.is_addition
        assert not block.is_deletion

    def test_addition(self):
        """Test that empty and whitespace-only searches are additions."""
        assert DiffBlock(id="Block 1", search_lines=(), replace_lines=("x",)).is_addition
        assert DiffBlock(id="Block 1", search_lines=("  ", ""), replace_lines=("x",)).is_addition

    def test_deletion(self):
        """Test that an empty replace section is a deletion."""
        assert DiffBlock(id="Block 1", search_lines=("x",), replace_lines=()).is_deletion


class TestUsedRange:
    """Test range overlap checks."""

    def test_overlaps(self):
        """Test inclusive overlap on both ends."""
        used = UsedRange(3, 5)

        assert used.overlaps(5, 7)
        assert used.overlaps(1, 3)
        assert used.overlaps(4, 4)
        assert used.overlaps(1, 9)
        assert not used.overlaps(6, 8)
        assert not used.overlaps(1, 2)


class TestHunk:
    """Test hunk helpers."""

    def test_unlocated_hunk(self):
        """Test a hunk whose block was not found."""
        block = DiffBlock(id="Block 1", search_lines=("x",), replace_lines=("y",))
        hunk = Hunk(LocatedBlock(block, LocationResult(found=False, error="No suitable match found")))

        assert hunk.block_id == "Block 1"
        assert not hunk.is_located
        assert not hunk.is_resolved
        assert hunk.preview() == ""

    def test_replacement_lines(self):
        """Test that edited lines take precedence over the block's lines."""
        block = DiffBlock(id="Block 1", search_lines=("x",), replace_lines=("y",))
        location = LocationResult(found=True, start_line=1, end_line=1, found_lines=["x"])
        hunk = Hunk(LocatedBlock(block, location))

        assert hunk.replacement_lines() == ["y"]

        hunk.edited_lines = ["z"]
        hunk.decision = HunkDecision.ACCEPTED
        assert hunk.replacement_lines() == ["z"]
        assert hunk.is_resolved
