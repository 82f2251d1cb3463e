"""Tests for edit sessions."""

import itertools

import pytest

from search_replace.search_replace_config import EditSessionConfig, FeedbackConfig
from search_replace.search_replace_exceptions import (
    SearchReplaceParseError,
    SearchReplaceSessionError,
    SearchReplaceValidationError,
)
from search_replace.search_replace_session import EditSession
from search_replace.search_replace_types import HunkDecision, MatchType


@pytest.fixture
def three_block_diff(diff_builder):
    """Provide a diff with three independent blocks for the python_source fixture."""
    return diff_builder(
        ("    print('hi')", "    print('hello')"),
        ("    print('bye')", "    print('goodbye')"),
        ("def leave():", "def depart():"),
    )


EXPECTED_ALL_ACCEPTED = (
    "def greet():\n"
    "    print('hello')\n"
    "\n"
    "def depart():\n"
    "    print('goodbye')\n"
)


class TestEditSessionConstruction:
    """Test session creation."""

    def test_hunks_created_per_block(self, python_source, three_block_diff):
        """Test that each block becomes a pending hunk."""
        session = EditSession(python_source, three_block_diff)
        hunks = session.hunks()

        assert [hunk.block_id for hunk in hunks] == ["Block 1", "Block 2", "Block 3"]
        assert all(hunk.decision == HunkDecision.PENDING for hunk in hunks)
        assert [hunk.location.start_line for hunk in hunks] == [2, 5, 4]
        assert not session.is_complete()
        assert session.pending_count() == 3

    def test_broken_diff_raises(self, python_source):
        """Test that a structurally broken diff cannot start a session."""
        with pytest.raises(SearchReplaceParseError):
            EditSession(python_source, "<<<<<<< SEARCH\nold\n>>>>>>> REPLACE")

    def test_addition_mixed_with_other_blocks(self, python_source, diff_builder):
        """Test that a whole-file block must be the only block."""
        diff_text = diff_builder(("", "new file"), ("    print('hi')", "    print('x')"))

        with pytest.raises(SearchReplaceValidationError, match="Block 1"):
            EditSession(python_source, diff_text)

    def test_auto_approve(self, python_source, three_block_diff):
        """Test that auto-approve accepts every located hunk."""
        session = EditSession(python_source, three_block_diff, EditSessionConfig(auto_approve=True))

        assert session.is_complete()
        assert session.finalize().content == EXPECTED_ALL_ACCEPTED


class TestEditSessionDecisions:
    """Test accept and reject rules."""

    def test_accept_all_and_finalize(self, python_source, three_block_diff):
        """Test applying every hunk."""
        session = EditSession(python_source, three_block_diff)
        assert session.accept_all() == 3

        result = session.finalize()
        assert result.success
        assert result.content == EXPECTED_ALL_ACCEPTED
        assert result.error is None

    @pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
    def test_decision_order_does_not_matter(self, python_source, three_block_diff, order):
        """Test that accepting in any order gives the same content."""
        session = EditSession(python_source, three_block_diff)
        for index in order:
            session.accept(index)

        assert session.finalize().content == EXPECTED_ALL_ACCEPTED

    def test_reject_keeps_original_lines(self, python_source, three_block_diff):
        """Test that rejected hunks leave their lines unchanged."""
        session = EditSession(python_source, three_block_diff)
        session.accept(0)
        session.reject(1)
        session.reject(2)

        assert session.finalize().content == python_source.replace("print('hi')", "print('hello')")

    def test_reject_all_leaves_content_unchanged(self, python_source, three_block_diff):
        """Test that rejecting everything returns the original content."""
        session = EditSession(python_source, three_block_diff)
        assert session.reject_all() == 3

        assert session.finalize().content == python_source

    def test_deletion(self, python_source, diff_builder):
        """Test that an empty REPLACE section removes the lines."""
        session = EditSession(python_source, diff_builder(("def leave():\n    print('bye')", "")))
        session.accept(0)

        assert session.finalize().content == "def greet():\n    print('hi')\n\n"

    def test_addition_replaces_whole_file(self, python_source, diff_builder):
        """Test that a whole-file block replaces all content."""
        session = EditSession(python_source, diff_builder(("", "x = 1\ny = 2")))
        session.accept(0)

        assert session.finalize().content == "x = 1\ny = 2"

    def test_addition_to_empty_content(self, diff_builder):
        """Test a whole-file block against empty content."""
        session = EditSession("", diff_builder(("", "print('new')")))
        session.accept(0)

        assert session.finalize().content == "print('new')"

    def test_cannot_decide_twice(self, python_source, three_block_diff):
        """Test that a decided hunk cannot be decided again."""
        session = EditSession(python_source, three_block_diff)
        session.accept(0)

        with pytest.raises(SearchReplaceSessionError, match="already been accepted"):
            session.accept(0)

        with pytest.raises(SearchReplaceSessionError):
            session.reject(0)

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_bad_index(self, python_source, three_block_diff, index):
        """Test that out-of-range indexes are refused."""
        session = EditSession(python_source, three_block_diff)

        with pytest.raises(SearchReplaceSessionError, match="out of range"):
            session.accept(index)

    def test_unlocated_hunk_cannot_be_accepted(self, python_source, diff_builder):
        """Test that a hunk without a target range can only be rejected."""
        diff_text = diff_builder(("    print('hi')", "    print('x')"), ("nothing like this", "y"))
        session = EditSession(python_source, diff_text)

        with pytest.raises(SearchReplaceSessionError, match="could not be located"):
            session.accept(1)

        session.reject(1)
        assert session.hunk(1).decision == HunkDecision.REJECTED

    def test_accept_all_skips_unlocated(self, python_source, diff_builder):
        """Test that accept_all leaves unlocated hunks pending."""
        diff_text = diff_builder(("    print('hi')", "    print('x')"), ("nothing like this", "y"))
        session = EditSession(python_source, diff_text)

        assert session.accept_all() == 1
        assert not session.is_complete()
        assert session.hunk(1).decision == HunkDecision.PENDING

        assert session.reject_all() == 1
        assert session.is_complete()


class TestEditSessionNavigation:
    """Test the review cursor."""

    def test_next_and_prev_clamp(self, python_source, three_block_diff):
        """Test that the cursor stays within the hunk list."""
        session = EditSession(python_source, three_block_diff)

        assert session.cursor == 0
        assert session.prev() == 0
        assert session.next() == 1
        assert session.next() == 2
        assert session.next() == 2
        assert session.prev() == 1
        assert session.current_hunk().block_id == "Block 2"


class TestEditSessionFinalize:
    """Test finalization rules."""

    def test_pending_hunks_block_finalize(self, python_source, three_block_diff):
        """Test that every hunk must be decided first."""
        session = EditSession(python_source, three_block_diff)
        session.accept(0)

        with pytest.raises(SearchReplaceSessionError, match="2 hunk\\(s\\) still pending"):
            session.finalize()

    def test_finalize_twice(self, python_source, three_block_diff):
        """Test that a session can only be finalized once."""
        session = EditSession(python_source, three_block_diff)
        session.accept_all()
        session.finalize()

        with pytest.raises(SearchReplaceSessionError, match="already been finalized"):
            session.finalize()

    def test_no_commands_after_finalize(self, python_source, three_block_diff):
        """Test that decisions are refused after finalization."""
        session = EditSession(python_source, three_block_diff)
        session.reject_all()
        session.finalize()

        assert session.is_finalized
        with pytest.raises(SearchReplaceSessionError):
            session.accept_all()

    def test_nothing_located(self, python_source, diff_builder):
        """Test that a session with no located hunk fails to finalize."""
        session = EditSession(python_source, diff_builder(("nothing like this", "x"), ("or this either", "y")))

        result = session.finalize()
        assert not result.success
        assert result.content is None
        assert "None of the 2 block(s)" in result.error
        assert "## ISSUES WHILE SEARCHING" in result.summary

    def test_trailing_newline_preserved(self, diff_builder):
        """Test that content after the last hunk is kept intact."""
        session = EditSession("a\nb\n", diff_builder(("b", "c")))
        session.accept_all()

        assert session.finalize().content == "a\nc\n"

    def test_rejecting_unlocated_hunks_finalizes(self, python_source, diff_builder):
        """Test that rejecting every unlocated hunk leaves the content unchanged."""
        session = EditSession(python_source, diff_builder(("nothing like this", "x"), ("or this either", "y")))
        assert session.reject_all() == 2

        result = session.finalize()
        assert result.success
        assert result.content == python_source
        assert result.error is None

    def test_crlf_line_endings_preserved(self, diff_builder):
        """Test that replacement lines take the line ending of the original content."""
        session = EditSession("a\r\nb\r\n", diff_builder(("a", "x\ny")))
        assert session.hunk(0).location.overall_match_type == MatchType.EXACT

        session.accept_all()
        result = session.finalize()
        assert result.content == "x\r\ny\r\nb\r\n"
        assert "-a\n+x\n+y" in result.summary

    def test_crlf_preview_content(self, diff_builder):
        """Test that the in-progress preview keeps CRLF line endings."""
        session = EditSession("a\r\nb\r\nc", diff_builder(("b", "z")))

        assert session.preview_content() == "a\r\nz\r\nc"


class TestEditSessionEditsAndPreview:
    """Test reviewer edits and previews."""

    def test_preview_content_treats_pending_as_accepted(self, python_source, three_block_diff):
        """Test the in-progress preview."""
        session = EditSession(python_source, three_block_diff)
        session.reject(2)

        preview = session.preview_content()
        assert "print('hello')" in preview
        assert "print('goodbye')" in preview
        assert "def leave():" in preview

    def test_hunk_preview(self, python_source, three_block_diff):
        """Test the unified diff preview of one hunk."""
        session = EditSession(python_source, three_block_diff)
        preview = session.hunk(0).preview()

        assert "--- Block 1 (current)" in preview
        assert "+++ Block 1 (proposed)" in preview
        assert "-    print('hi')" in preview
        assert "+    print('hello')" in preview

    def test_edit_hunk(self, python_source, three_block_diff):
        """Test that reviewer edits replace the proposed lines."""
        session = EditSession(python_source, three_block_diff)
        session.edit_hunk(0, ["    print('hey there')"])

        hunk = session.hunk(0)
        assert hunk.decision == HunkDecision.PENDING
        assert "+++ Block 1 (edited)" in hunk.user_edit_diff
        assert "+    print('hey there')" in hunk.preview()

        session.accept_all()
        result = session.finalize()
        assert "    print('hey there')" in result.content
        assert "## REVIEWER EDITS" in result.summary

    def test_edit_identical_lines(self, python_source, three_block_diff):
        """Test that an edit matching the proposal records no diff."""
        session = EditSession(python_source, three_block_diff)
        session.edit_hunk(0, ["    print('hello')"])

        assert session.hunk(0).user_edit_diff is None

    def test_edit_decided_hunk(self, python_source, three_block_diff):
        """Test that decided hunks cannot be edited."""
        session = EditSession(python_source, three_block_diff)
        session.reject(0)

        with pytest.raises(SearchReplaceSessionError):
            session.edit_hunk(0, ["x"])


class TestEditSessionSummary:
    """Test the session summary."""

    def test_summary_sections(self, python_source, three_block_diff):
        """Test the report heading, counts and final diff."""
        session = EditSession(python_source, three_block_diff)
        session.accept(0)
        session.reject(1)
        session.reject(2)
        summary = session.finalize().summary

        assert summary.startswith("# EDIT SESSION")
        assert "Accepted: 1 of 3 block(s)" in summary
        assert "Rejected: 2" in summary
        assert "- Block 1: accepted (lines 2-2, exact, 100% confidence)" in summary
        assert "## CHANGES" in summary
        assert "-    print('hi')" in summary
        assert "+    print('hello')" in summary

    def test_no_final_diff_when_unchanged(self, python_source, three_block_diff):
        """Test that an unchanged file has no change section."""
        session = EditSession(python_source, three_block_diff)
        session.reject_all()

        assert "## CHANGES" not in session.finalize().summary

    def test_no_final_diff_for_addition(self, python_source, diff_builder):
        """Test that whole-file replacements have no change section."""
        session = EditSession(python_source, diff_builder(("", "x = 1")))
        session.accept_all()

        assert "## CHANGES" not in session.finalize().summary

    def test_parser_feedback_included(self, python_source):
        """Test that parse issues reach the summary."""
        diff_text = "<<<<<<<  SEARCH\n    print('hi')\n=======\n    print('x')\n>>>>>>> REPLACE"
        session = EditSession(python_source, diff_text)
        session.accept_all()

        assert "## ISSUES WHILE PARSING DIFF" in session.finalize().summary

    def test_feedback_sections_can_be_disabled(self, python_source):
        """Test that feedback settings control the summary."""
        config = EditSessionConfig(feedback=FeedbackConfig(
            include_parser_feedback=False,
            include_session_summary=False,
            include_final_diff=False
        ))
        diff_text = "<<<<<<<  SEARCH\n    print('hi')\n=======\n    print('x')\n>>>>>>> REPLACE"
        session = EditSession(python_source, diff_text, config)
        session.accept_all()
        summary = session.finalize().summary

        assert summary == "# EDIT SESSION\n"
