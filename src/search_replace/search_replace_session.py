"""Interactive review of a SEARCH/REPLACE diff against one file."""

import difflib
import logging
from typing import List

from search_replace.search_replace_block_locator import BlockLocator
from search_replace.search_replace_config import EditSessionConfig
from search_replace.search_replace_exceptions import SearchReplaceSessionError, SearchReplaceValidationError
from search_replace.search_replace_parser import DiffParser
from search_replace.search_replace_types import (
    DiffBlock,
    EditSessionResult,
    Hunk,
    HunkDecision,
    LocatedBlock,
)


class EditSession:
    """
    Review session for the blocks of one diff.

    All blocks are located once, against the original content, when the
    session is created.  Each located block becomes a hunk that a reviewer
    accepts or rejects, in any order.  Finalizing rebuilds the file in a
    single pass over the original lines, so the result does not depend on
    the order in which decisions were made.
    """

    def __init__(self, original_content: str, diff_text: str, config: EditSessionConfig | None = None):
        """
        Parse a diff and locate its blocks in the original content.

        Args:
            original_content: File content the diff applies to
            diff_text: SEARCH/REPLACE diff text
            config: Session settings (defaults used if not given)

        Raises:
            SearchReplaceParseError: If the diff is structurally broken
            SearchReplaceValidationError: If a whole-file block is mixed with other blocks
        """
        self._config = config or EditSessionConfig.create_default()
        self._logger = logging.getLogger("EditSession")
        self._original_content = original_content
        self._line_ending = "\r\n" if "\r\n" in original_content else "\n"
        self._lf_content = original_content.replace("\r\n", "\n")

        self._parser = DiffParser(self._config.parser)
        self._blocks = self._parser.parse(diff_text)

        additions = [block for block in self._blocks if block.is_addition]
        if additions and len(self._blocks) > 1:
            raise SearchReplaceValidationError(
                f"{additions[0].id} has an empty SEARCH section, which replaces the whole file, "
                "but the diff contains other blocks. Send whole-file content as a single block",
                {'phase': 'validation', 'reason': 'mixed_addition', 'block_id': additions[0].id}
            )

        self._locator = BlockLocator(self._config.locator)
        self._located_blocks = self._locator.locate_all_blocks(self._blocks, self._lf_content)
        self._hunks = [Hunk(located_block) for located_block in self._located_blocks]
        self._cursor = 0
        self._finalized = False

        located_count = sum(1 for hunk in self._hunks if hunk.is_located)
        self._logger.debug("Session created with %d hunk(s), %d located", len(self._hunks), located_count)

        if self._config.auto_approve:
            self.accept_all()

    @property
    def original_content(self) -> str:
        """Content the session was created with."""
        return self._original_content

    @property
    def cursor(self) -> int:
        """Index of the hunk currently under review."""
        return self._cursor

    @property
    def is_finalized(self) -> bool:
        """True once finalize() has been called."""
        return self._finalized

    def blocks(self) -> List[DiffBlock]:
        """Get the parsed blocks."""
        return list(self._blocks)

    def located_blocks(self) -> List[LocatedBlock]:
        """Get the location result of every block."""
        return list(self._located_blocks)

    def hunks(self) -> List[Hunk]:
        """Get all hunks, in diff order."""
        return list(self._hunks)

    def hunk(self, index: int) -> Hunk:
        """
        Get one hunk.

        Args:
            index: Hunk index (0-based)

        Returns:
            The hunk

        Raises:
            SearchReplaceSessionError: If the index is out of range
        """
        return self._get_hunk(index)

    def current_hunk(self) -> Hunk | None:
        """Get the hunk at the cursor, or None if there are no hunks."""
        if not self._hunks:
            return None

        return self._hunks[self._cursor]

    def accept(self, index: int) -> None:
        """
        Accept a hunk.

        Args:
            index: Hunk index (0-based)

        Raises:
            SearchReplaceSessionError: If the hunk is already decided, was not
                located, or the index is out of range
        """
        hunk = self._get_pending_hunk(index, "accept")
        if not hunk.is_located:
            raise SearchReplaceSessionError(
                f"Cannot accept {hunk.block_id}: it could not be located ({hunk.location.error})",
                {'phase': 'review', 'reason': 'not_located', 'index': index}
            )

        hunk.decision = HunkDecision.ACCEPTED
        self._logger.debug("Accepted %s", hunk.block_id)

    def reject(self, index: int) -> None:
        """
        Reject a hunk, leaving its lines unchanged.

        Args:
            index: Hunk index (0-based)

        Raises:
            SearchReplaceSessionError: If the hunk is already decided or the index is out of range
        """
        hunk = self._get_pending_hunk(index, "reject")
        hunk.decision = HunkDecision.REJECTED
        self._logger.debug("Rejected %s", hunk.block_id)

    def accept_all(self) -> int:
        """
        Accept every pending hunk that was located.

        Hunks that could not be located stay pending.

        Returns:
            Number of hunks accepted
        """
        self._check_open()
        count = 0
        for index, hunk in enumerate(self._hunks):
            if hunk.decision == HunkDecision.PENDING and hunk.is_located:
                self.accept(index)
                count += 1

        return count

    def reject_all(self) -> int:
        """
        Reject every pending hunk.

        Returns:
            Number of hunks rejected
        """
        self._check_open()
        count = 0
        for index, hunk in enumerate(self._hunks):
            if hunk.decision == HunkDecision.PENDING:
                self.reject(index)
                count += 1

        return count

    def next(self) -> int:
        """Move the cursor to the next hunk, stopping at the last one."""
        if self._hunks:
            self._cursor = min(self._cursor + 1, len(self._hunks) - 1)

        return self._cursor

    def prev(self) -> int:
        """Move the cursor to the previous hunk, stopping at the first one."""
        self._cursor = max(self._cursor - 1, 0)
        return self._cursor

    def is_complete(self) -> bool:
        """Check whether every hunk has been accepted or rejected."""
        return all(hunk.is_resolved for hunk in self._hunks)

    def pending_count(self) -> int:
        """Count the hunks still awaiting a decision."""
        return sum(1 for hunk in self._hunks if not hunk.is_resolved)

    def edit_hunk(self, index: int, lines: List[str]) -> None:
        """
        Replace a pending hunk's proposed lines with the reviewer's own.

        The hunk stays pending; accepting it writes the edited lines.

        Args:
            index: Hunk index (0-based)
            lines: Replacement lines to use instead of the block's REPLACE section

        Raises:
            SearchReplaceSessionError: If the hunk is already decided, was not
                located, or the index is out of range
        """
        hunk = self._get_pending_hunk(index, "edit")
        if not hunk.is_located:
            raise SearchReplaceSessionError(
                f"Cannot edit {hunk.block_id}: it could not be located",
                {'phase': 'review', 'reason': 'not_located', 'index': index}
            )

        proposed = list(hunk.located_block.replace_lines)
        hunk.edited_lines = list(lines)
        if hunk.edited_lines == proposed:
            hunk.user_edit_diff = None
            return

        hunk.user_edit_diff = "\n".join(difflib.unified_diff(
            proposed,
            hunk.edited_lines,
            fromfile=f"{hunk.block_id} (proposed)",
            tofile=f"{hunk.block_id} (edited)",
            lineterm=""
        ))
        self._logger.debug("Recorded reviewer edit for %s", hunk.block_id)

    def preview_content(self) -> str:
        """
        Build the file content as it would be if every pending hunk were accepted.

        Returns:
            Reconstructed content
        """
        return self._reconstruct(include_pending=True)

    def parser_feedback(self) -> str | None:
        """Get feedback about non-fatal parse issues, if any."""
        return self._parser.get_feedback()

    def locator_feedback(self) -> str | None:
        """Get feedback about failed and fuzzy block locations, if any."""
        return self._locator.get_feedback(self._located_blocks)

    def finalize(self) -> EditSessionResult:
        """
        Finish the session and build the edited content.

        Returns:
            EditSessionResult with the new content and a summary, or with an
            error if no block could be located and none was rejected by the reviewer

        Raises:
            SearchReplaceSessionError: If the session is already finalized or hunks are still pending
        """
        self._check_open()

        if self._hunks and not any(hunk.is_located or hunk.is_resolved for hunk in self._hunks):
            self._finalized = True
            self._logger.warning("No block could be located; nothing to apply")
            return EditSessionResult(
                success=False,
                summary=self._build_summary(None),
                error=f"None of the {len(self._hunks)} block(s) could be located in the file"
            )

        pending = self.pending_count()
        if pending:
            raise SearchReplaceSessionError(
                f"Cannot finalize: {pending} hunk(s) still pending",
                {'phase': 'finalize', 'reason': 'pending_hunks', 'pending': pending}
            )

        content = self._reconstruct(include_pending=False)
        self._finalized = True
        return EditSessionResult(success=True, content=content, summary=self._build_summary(content))

    def _check_open(self) -> None:
        if self._finalized:
            raise SearchReplaceSessionError(
                "Session has already been finalized",
                {'phase': 'review', 'reason': 'finalized'}
            )

    def _get_hunk(self, index: int) -> Hunk:
        if not 0 <= index < len(self._hunks):
            raise SearchReplaceSessionError(
                f"Hunk index {index} out of range (session has {len(self._hunks)} hunk(s))",
                {'phase': 'review', 'reason': 'bad_index', 'index': index}
            )

        return self._hunks[index]

    def _get_pending_hunk(self, index: int, action: str) -> Hunk:
        self._check_open()
        hunk = self._get_hunk(index)
        if hunk.is_resolved:
            raise SearchReplaceSessionError(
                f"Cannot {action} {hunk.block_id}: it has already been {hunk.decision.value}",
                {'phase': 'review', 'reason': 'already_decided', 'index': index}
            )

        return hunk

    def _reconstruct(self, include_pending: bool) -> str:
        """
        Rebuild the file from the original lines and the applied hunks.

        Lines are joined with the line ending of the original content.

        Args:
            include_pending: Treat pending located hunks as accepted

        Returns:
            Reconstructed content
        """
        applied: List[Hunk] = []
        for hunk in self._hunks:
            if not hunk.is_located:
                continue

            if hunk.decision == HunkDecision.ACCEPTED or (include_pending and hunk.decision == HunkDecision.PENDING):
                applied.append(hunk)

        if not applied:
            return self._original_content

        original_lines = self._lf_content.split("\n")
        result_lines: List[str] = []
        position = 0
        for hunk in sorted(applied, key=lambda h: h.location.start_line or 0):
            start_index = (hunk.location.start_line or 1) - 1
            result_lines.extend(original_lines[position:start_index])
            result_lines.extend(hunk.replacement_lines())
            position = hunk.location.end_line or start_index

        result_lines.extend(original_lines[position:])
        return self._line_ending.join(result_lines)

    def _build_summary(self, content: str | None) -> str:
        """
        Build the markdown session report.

        Args:
            content: Final content, or None if nothing could be applied

        Returns:
            Summary text
        """
        feedback_config = self._config.feedback
        sections = ["# EDIT SESSION"]

        if feedback_config.include_session_summary:
            accepted = sum(1 for hunk in self._hunks if hunk.decision == HunkDecision.ACCEPTED)
            rejected = sum(1 for hunk in self._hunks if hunk.decision == HunkDecision.REJECTED)
            status_lines = [
                f"Accepted: {accepted} of {len(self._hunks)} block(s)",
                f"Rejected: {rejected}",
                ""
            ]
            status_lines.extend(self._hunk_status(hunk) for hunk in self._hunks)
            sections.append("\n".join(status_lines))

        if feedback_config.include_parser_feedback:
            parser_feedback = self.parser_feedback()
            if parser_feedback:
                sections.append(parser_feedback)

        if feedback_config.include_locator_feedback:
            locator_feedback = self.locator_feedback()
            if locator_feedback:
                sections.append(locator_feedback)

        edits = [
            hunk for hunk in self._hunks
            if hunk.decision == HunkDecision.ACCEPTED and hunk.user_edit_diff
        ]
        if edits:
            edit_sections = ["## REVIEWER EDITS"]
            for hunk in edits:
                edit_sections.append(
                    f"{hunk.block_id} was changed by the reviewer before it was applied:\n"
                    f"```diff\n{hunk.user_edit_diff}\n```"
                )

            sections.append("\n".join(edit_sections))

        if feedback_config.include_final_diff and content is not None:
            final_diff = self._final_diff(content)
            if final_diff:
                sections.append(f"## CHANGES\n```diff\n{final_diff}\n```")

        return "\n\n".join(sections) + "\n"

    def _hunk_status(self, hunk: Hunk) -> str:
        location = hunk.location
        if not hunk.is_located:
            return f"- {hunk.block_id}: {hunk.decision.value}, not located ({location.error})"

        edited = ", edited by reviewer" if hunk.user_edit_diff else ""
        return (
            f"- {hunk.block_id}: {hunk.decision.value}{edited} "
            f"(lines {location.start_line}-{location.end_line}, "
            f"{location.overall_match_type.value}, {location.confidence}% confidence)"
        )

    def _final_diff(self, content: str) -> str:
        """Unified diff of the original against the new content, empty if not useful."""
        if content == self._original_content:
            return ""

        if any(block.is_addition for block in self._blocks):
            return ""

        return "\n".join(difflib.unified_diff(
            self._lf_content.split("\n"),
            content.replace("\r\n", "\n").split("\n"),
            fromfile="before",
            tofile="after",
            lineterm=""
        ))
