"""Tracking of non-fatal parse issues, reported back to the diff's author."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List


class IssueSeverity(Enum):
    """How serious a parse issue is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class IssueType(Enum):
    """Kinds of parse issue that the parser can recover from."""

    EXTRA_SPACES_IN_MARKERS = "extra_spaces_in_markers"
    MISSING_SPACES_IN_MARKERS = "missing_spaces_in_markers"
    CASE_MISMATCH_MARKERS = "case_mismatch_markers"
    CONTENT_ON_MARKER_LINE = "content_on_marker_line"
    MARKER_TRAILING_CHARACTER = "marker_trailing_character"
    MALFORMED_SEARCH_MARKER = "malformed_search_marker"
    MARKDOWN_NOISE = "markdown_noise"
    EMPTY_BLOCK = "empty_block"


@dataclass
class ParseIssue:
    """A non-fatal problem found, and fixed, while parsing a diff."""

    kind: IssueType
    message: str
    severity: IssueSeverity
    fix: str
    guidance: str


def _describe(kind: IssueType, details: Dict[str, Any]) -> ParseIssue:
    if kind == IssueType.EXTRA_SPACES_IN_MARKERS:
        return ParseIssue(
            kind=kind,
            message=f"Extra spaces found in marker `{details.get('line', '')}`",
            severity=IssueSeverity.WARNING,
            fix="Normalized marker spacing",
            guidance="Use exactly one space: '<<<<<<< SEARCH' not '<<<<<<<  SEARCH'"
        )

    if kind == IssueType.MISSING_SPACES_IN_MARKERS:
        return ParseIssue(
            kind=kind,
            message=f"No space between marker and keyword in `{details.get('line', '')}`",
            severity=IssueSeverity.WARNING,
            fix="Added missing space",
            guidance="Use a space: '<<<<<<< SEARCH' not '<<<<<<<SEARCH'"
        )

    if kind == IssueType.CASE_MISMATCH_MARKERS:
        return ParseIssue(
            kind=kind,
            message=f"Inconsistent case in marker keyword `{details.get('line', '')}`",
            severity=IssueSeverity.WARNING,
            fix="Treated keyword as uppercase",
            guidance="Always use uppercase: 'SEARCH' and 'REPLACE'"
        )

    if kind == IssueType.CONTENT_ON_MARKER_LINE:
        marker = details.get("marker", "SEARCH")
        position = "first" if marker == "SEARCH" else "last"
        return ParseIssue(
            kind=kind,
            message=f"`{details.get('line', '')}` marker line contains content: `{details.get('inline_content', '')}`",
            severity=IssueSeverity.WARNING,
            fix=f"Removed the content from the marker line and used it as the {position} line of the {marker} section",
            guidance="Marker lines must contain only the marker itself"
        )

    if kind == IssueType.MARKER_TRAILING_CHARACTER:
        inline_content = details.get("inline_content", "")
        fix = "Removed `>`"
        if inline_content:
            fix += " and used the rest of the line as the first line of the SEARCH section"

        return ParseIssue(
            kind=kind,
            message=f"`<<<<<<< SEARCH` marker line is not exact: `{details.get('line', '')}` found instead",
            severity=IssueSeverity.WARNING,
            fix=fix,
            guidance="The `<<<<<<< SEARCH` marker line must be exact, with no `>` or other characters after it"
        )

    if kind == IssueType.MALFORMED_SEARCH_MARKER:
        return ParseIssue(
            kind=kind,
            message=f"Missing SEARCH marker before line {details.get('line_number', '?')}",
            severity=IssueSeverity.ERROR,
            fix="Added missing SEARCH marker",
            guidance="Always start blocks with '<<<<<<< SEARCH'"
        )

    if kind == IssueType.MARKDOWN_NOISE:
        return ParseIssue(
            kind=kind,
            message="Markdown code fence found around diff content",
            severity=IssueSeverity.INFO,
            fix="Ignored markdown formatting",
            guidance="Don't wrap diff blocks in markdown code blocks"
        )

    return ParseIssue(
        kind=kind,
        message=f"Block ending at line {details.get('line_number', '?')} has empty SEARCH and REPLACE sections",
        severity=IssueSeverity.INFO,
        fix="Skipped the empty block",
        guidance="Every block needs SEARCH content, REPLACE content, or both"
    )


class IssueTracker:
    """Collects parse issues for one parse call."""

    def __init__(self) -> None:
        """Initialize an empty tracker."""
        self._issues: List[ParseIssue] = []

    def track_issue(self, kind: IssueType, **details: Any) -> ParseIssue:
        """
        Record an issue.

        Args:
            kind: Issue type
            **details: Issue-specific values used in the description

        Returns:
            The recorded issue
        """
        issue = _describe(kind, details)
        self._issues.append(issue)
        return issue

    def issues(self) -> List[ParseIssue]:
        """Get a copy of the recorded issues."""
        return list(self._issues)

    def has_issues(self) -> bool:
        """Check whether any issues were recorded."""
        return bool(self._issues)

    def clear(self) -> None:
        """Forget all recorded issues."""
        self._issues = []

    def get_feedback(self) -> str | None:
        """
        Render the recorded issues for the diff's author.

        Returns:
            Markdown text with one section per issue, or None if there are none
        """
        if not self._issues:
            return None

        parts = []
        for issue in self._issues:
            parts.append(
                f"### {issue.severity.value.upper()}\n"
                f"Issue Encountered: {issue.message}\n"
                f"Resolved By Editor: {issue.fix}\n"
                f"Future Guidance: {issue.guidance}"
            )

        return "\n\n".join(parts)
