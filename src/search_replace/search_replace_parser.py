"""SEARCH/REPLACE diff parsing."""

from enum import Enum
import logging
import re
from typing import List, NoReturn, Tuple

from search_replace.search_replace_config import ParserConfig
from search_replace.search_replace_exceptions import SearchReplaceParseError
from search_replace.search_replace_issue_tracker import IssueTracker, IssueType, ParseIssue
from search_replace.search_replace_types import DiffBlock


_SEARCH_MARKER_RE = re.compile(r"^\s*(<{5,})(\s*)(search)(?![A-Za-z0-9_])(.*)$", re.IGNORECASE)
_REPLACE_MARKER_RE = re.compile(r"^\s*(>{5,})(\s*)(replace)(?![A-Za-z0-9_])(.*)$", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"^\s*={7}\s*$")
_ESCAPED_MARKER_RE = re.compile(r"^(\s*)\\(?=<{5}|={5}|>{5})")
_CODE_FENCE_RE = re.compile(r"^\s*```")


class _MarkerType(Enum):
    SEARCH = "search"
    SEPARATOR = "separator"
    REPLACE = "replace"


class _ParseState(Enum):
    WAITING = "waiting"
    SEARCHING = "searching"
    REPLACING = "replacing"


class DiffParser:
    """
    Parser for SEARCH/REPLACE diffs.

    A diff is a sequence of blocks:

        <<<<<<< SEARCH
        lines to find
        =======
        replacement lines
        >>>>>>> REPLACE

    Common marker mistakes (spacing, case, content on the marker line, a
    missing SEARCH marker) are corrected and recorded as issues.  Structural
    errors raise SearchReplaceParseError.
    """

    def __init__(self, config: ParserConfig | None = None):
        """
        Initialize the parser.

        Args:
            config: Parser settings (defaults used if not given)
        """
        self._config = config or ParserConfig()
        self._tracker = IssueTracker()
        self._logger = logging.getLogger("DiffParser")

    def parse(self, diff_text: str) -> List[DiffBlock]:
        """
        Parse SEARCH/REPLACE diff text into blocks.

        Issues from any previous call are cleared first.

        Args:
            diff_text: Raw diff text

        Returns:
            Blocks in the order they appear, numbered from 1

        Raises:
            SearchReplaceParseError: If the diff is empty or structurally broken
        """
        self._tracker.clear()

        if not diff_text or not diff_text.strip():
            raise SearchReplaceParseError(
                "Empty diff provided",
                {'phase': 'parsing', 'reason': 'empty_input'}
            )

        lines = diff_text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        can_synthesize = not any(_SEARCH_MARKER_RE.match(line) for line in lines)

        blocks: List[DiffBlock] = []
        state = _ParseState.WAITING
        search_lines: List[str] = []
        replace_lines: List[str] = []
        between_lines: List[str] = []
        block_start = 0

        for line_number, line in enumerate(lines, 1):
            marker, inline_content = self._detect_marker(line)

            if marker == _MarkerType.SEARCH:
                if state != _ParseState.WAITING:
                    self._raise_structural(
                        f"Unexpected SEARCH marker at line {line_number} - expected "
                        f"{'SEPARATOR' if state == _ParseState.SEARCHING else 'REPLACE'} marker first. "
                        "If the content contains `<<<<<<< SEARCH`, escape it with a backslash: `\\<<<<<<< SEARCH`",
                        line_number,
                        line
                    )

                state = _ParseState.SEARCHING
                block_start = line_number
                search_lines = [inline_content] if inline_content is not None else []
                between_lines = []

            elif marker == _MarkerType.SEPARATOR:
                if state == _ParseState.REPLACING:
                    self._raise_structural(
                        f"Unexpected separator at line {line_number} - a block may only contain one `=======`. "
                        "If the content contains `=======`, escape it with a backslash: `\\=======`",
                        line_number,
                        line
                    )

                if state == _ParseState.WAITING:
                    if not can_synthesize or blocks:
                        self._raise_structural(
                            f"Unexpected separator at line {line_number} - expected a `<<<<<<< SEARCH` marker first. "
                            "If the content contains `=======`, escape it with a backslash: `\\=======`",
                            line_number,
                            line
                        )

                    search_lines = self._synthesize_search(between_lines, line_number)
                    block_start = line_number

                state = _ParseState.REPLACING
                replace_lines = []

            elif marker == _MarkerType.REPLACE:
                if state != _ParseState.REPLACING:
                    self._raise_structural(
                        f"REPLACE marker at line {line_number} has no preceding `=======` separator. "
                        "Each block must be `<<<<<<< SEARCH`, search lines, `=======`, replace lines, "
                        "`>>>>>>> REPLACE`. If the content contains `>>>>>>> REPLACE`, escape it with a "
                        "backslash: `\\>>>>>>> REPLACE`",
                        line_number,
                        line
                    )

                if inline_content is not None:
                    replace_lines.append(inline_content)

                state = _ParseState.WAITING
                between_lines = []

                if not search_lines and not replace_lines:
                    self._track(IssueType.EMPTY_BLOCK, line_number=line_number)
                    continue

                blocks.append(DiffBlock(
                    id=f"Block {len(blocks) + 1}",
                    search_lines=tuple(search_lines),
                    replace_lines=tuple(replace_lines)
                ))

            elif state == _ParseState.SEARCHING:
                search_lines.append(self._unescape_markers(line))

            elif state == _ParseState.REPLACING:
                replace_lines.append(self._unescape_markers(line))

            else:
                between_lines.append(self._unescape_markers(line))

        if state == _ParseState.SEARCHING:
            raise SearchReplaceParseError(
                f"Unterminated SEARCH section in block starting at line {block_start} - "
                "missing `=======` separator and `>>>>>>> REPLACE` marker",
                {'phase': 'parsing', 'reason': 'unterminated_search', 'line_number': block_start}
            )

        if state == _ParseState.REPLACING:
            raise SearchReplaceParseError(
                f"Unterminated REPLACE section in block starting at line {block_start} - "
                "missing `>>>>>>> REPLACE` marker",
                {'phase': 'parsing', 'reason': 'unterminated_replace', 'line_number': block_start}
            )

        if not blocks:
            raise SearchReplaceParseError(
                "No valid SEARCH/REPLACE blocks found",
                {'phase': 'parsing', 'reason': 'no_blocks'}
            )

        self._logger.debug("Parsed %d block(s) with %d issue(s)", len(blocks), len(self._tracker.issues()))
        return blocks

    def has_issues(self) -> bool:
        """Check whether the last parse recorded any issues."""
        return self._tracker.has_issues()

    def issues(self) -> List[ParseIssue]:
        """Get the issues recorded by the last parse."""
        return self._tracker.issues()

    def clear_issues(self) -> None:
        """Forget recorded issues."""
        self._tracker.clear()

    def get_feedback(self) -> str | None:
        """
        Get feedback about recorded issues for the diff's author.

        Returns:
            Markdown feedback, or None if there were no issues
        """
        feedback = self._tracker.get_feedback()
        if feedback is None:
            return None

        return "## ISSUES WHILE PARSING DIFF\n" + feedback

    def _raise_structural(self, message: str, line_number: int, line: str) -> NoReturn:
        raise SearchReplaceParseError(
            message,
            {'phase': 'parsing', 'reason': 'structure', 'line_number': line_number, 'line_content': line}
        )

    def _track(self, kind: IssueType, **details: object) -> None:
        if self._config.track_issues:
            self._tracker.track_issue(kind, **details)

    def _detect_marker(self, line: str) -> Tuple[_MarkerType | None, str | None]:
        """
        Classify a line as a marker and extract any inline content.

        Args:
            line: Line to check

        Returns:
            Tuple of (marker type or None, inline content or None)
        """
        match = _SEARCH_MARKER_RE.match(line)
        if match:
            self._check_marker_format(line, match.group(2), match.group(3), "SEARCH")
            rest = match.group(4)
            if not rest.strip():
                return _MarkerType.SEARCH, None

            if rest.startswith(">"):
                inline_content = rest[1:].strip()
                self._track(IssueType.MARKER_TRAILING_CHARACTER, line=line, inline_content=inline_content)

            else:
                inline_content = rest.strip()
                self._track(IssueType.CONTENT_ON_MARKER_LINE, line=line, inline_content=inline_content, marker="SEARCH")

            if not inline_content or not self._config.extract_inline_content:
                return _MarkerType.SEARCH, None

            return _MarkerType.SEARCH, inline_content

        match = _REPLACE_MARKER_RE.match(line)
        if match:
            self._check_marker_format(line, match.group(2), match.group(3), "REPLACE")
            inline_content = match.group(4).strip()
            if not inline_content:
                return _MarkerType.REPLACE, None

            self._track(IssueType.CONTENT_ON_MARKER_LINE, line=line, inline_content=inline_content, marker="REPLACE")
            if not self._config.extract_inline_content:
                return _MarkerType.REPLACE, None

            return _MarkerType.REPLACE, inline_content

        if _SEPARATOR_RE.match(line):
            return _MarkerType.SEPARATOR, None

        return None, None

    def _check_marker_format(self, line: str, spaces: str, keyword: str, expected_keyword: str) -> None:
        if not spaces:
            self._track(IssueType.MISSING_SPACES_IN_MARKERS, line=line)

        elif len(spaces) > 1:
            self._track(IssueType.EXTRA_SPACES_IN_MARKERS, line=line)

        if keyword != expected_keyword:
            self._track(IssueType.CASE_MISMATCH_MARKERS, line=line)

    def _synthesize_search(self, between_lines: List[str], line_number: int) -> List[str]:
        """
        Recover search lines for a diff that has no SEARCH marker at all.

        Args:
            between_lines: Lines seen since the previous block ended
            line_number: Line number of the separator

        Returns:
            Search lines for the block
        """
        content = list(between_lines)
        saw_fence = False
        while content and (not content[0].strip() or _CODE_FENCE_RE.match(content[0])):
            if content[0].strip():
                saw_fence = True

            content.pop(0)

        first_line = line_number - len(content)
        self._logger.debug("Synthesizing SEARCH marker before line %d", first_line)
        self._track(IssueType.MALFORMED_SEARCH_MARKER, line_number=first_line)
        if saw_fence:
            self._track(IssueType.MARKDOWN_NOISE)

        return content

    def _unescape_markers(self, line: str) -> str:
        """Remove the backslash from an escaped marker-like line."""
        return _ESCAPED_MARKER_RE.sub(r"\1", line)
