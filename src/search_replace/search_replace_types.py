"""Shared dataclasses and enums for search/replace edit operations."""

from dataclasses import dataclass, field
import difflib
from enum import Enum
from typing import List, Set, Tuple


class MatchType(Enum):
    """Match quality tiers, best to worst."""

    EXACT = "exact"
    EXACT_WHITESPACE = "exact_whitespace"
    PUNCTUATION = "punctuation"
    CASE_INSENSITIVE = "case_insensitive"
    FUZZY_HIGH = "fuzzy_high"
    FUZZY_MEDIUM = "fuzzy_medium"
    FUZZY_LOW = "fuzzy_low"
    NO_MATCH = "no_match"

    @property
    def priority(self) -> int:
        """Rank of this tier; higher is better."""
        return _MATCH_TYPE_PRIORITY[self]

    @property
    def is_fuzzy(self) -> bool:
        """True for tiers derived from similarity scoring rather than normalization."""
        return self in (MatchType.FUZZY_HIGH, MatchType.FUZZY_MEDIUM, MatchType.FUZZY_LOW, MatchType.NO_MATCH)


_MATCH_TYPE_PRIORITY = {
    MatchType.EXACT: 7,
    MatchType.EXACT_WHITESPACE: 6,
    MatchType.PUNCTUATION: 5,
    MatchType.CASE_INSENSITIVE: 4,
    MatchType.FUZZY_HIGH: 3,
    MatchType.FUZZY_MEDIUM: 2,
    MatchType.FUZZY_LOW: 1,
    MatchType.NO_MATCH: 0,
}


class DifferenceType(Enum):
    """Kinds of difference detected between an expected and a found line."""

    WHITESPACE = "whitespace"
    CASE = "case"
    QUOTE_STYLE = "quote_style"
    HTML_ENTITIES = "html_entities"
    PUNCTUATION = "punctuation"


@dataclass
class LineMatchDetail:
    """Comparison of one search line against one file line."""

    line_number: int  # Absolute line number in the file (1-indexed)
    expected_line: str
    found_line: str
    line_score: float  # 0.0 to 1.0
    line_match_type: MatchType
    differences: Set[DifferenceType] = field(default_factory=set)


@dataclass
class SearchMetadata:
    """How a search was carried out."""

    windows_evaluated: int = 0
    windows_skipped: int = 0
    early_termination: bool = False


@dataclass
class LocationResult:
    """Result of locating one block's search lines inside a file."""

    found: bool
    start_line: int | None = None  # 1-indexed, inclusive
    end_line: int | None = None  # 1-indexed, inclusive
    overall_score: float = 0.0
    overall_match_type: MatchType = MatchType.NO_MATCH
    confidence: int = 0  # 0 to 100
    found_content: str = ""
    found_lines: List[str] = field(default_factory=list)
    line_details: List[LineMatchDetail] = field(default_factory=list)
    error: str | None = None
    search_metadata: SearchMetadata = field(default_factory=SearchMetadata)


@dataclass(frozen=True)
class DiffBlock:
    """One SEARCH/REPLACE unit produced by the parser."""

    id: str  # "Block N"
    search_lines: Tuple[str, ...]
    replace_lines: Tuple[str, ...]

    @property
    def search_content(self) -> str:
        """Search lines joined by newlines."""
        return "\n".join(self.search_lines)

    @property
    def replace_content(self) -> str:
        """Replace lines joined by newlines."""
        return "\n".join(self.replace_lines)

    @property
    def is_addition(self) -> bool:
        """True if the search section is empty or whitespace-only (whole-file content)."""
        return not any(line.strip() for line in self.search_lines)

    @property
    def is_deletion(self) -> bool:
        """True if the replace section is empty."""
        return not self.replace_lines


@dataclass(frozen=True)
class LocatedBlock:
    """A parsed block paired with where it was found."""

    block: DiffBlock
    location: LocationResult

    @property
    def block_id(self) -> str:
        """Identifier of the originating block."""
        return self.block.id

    @property
    def search_lines(self) -> Tuple[str, ...]:
        """Search lines of the originating block."""
        return self.block.search_lines

    @property
    def replace_lines(self) -> Tuple[str, ...]:
        """Replace lines of the originating block."""
        return self.block.replace_lines

    @property
    def search_content(self) -> str:
        """Search content of the originating block."""
        return self.block.search_content

    @property
    def replace_content(self) -> str:
        """Replace content of the originating block."""
        return self.block.replace_content


@dataclass(frozen=True)
class UsedRange:
    """A claimed line interval in the target file (1-indexed, inclusive)."""

    start_line: int
    end_line: int

    def overlaps(self, start_line: int, end_line: int) -> bool:
        """Check whether [start_line, end_line] intersects this range."""
        return not (end_line < self.start_line or start_line > self.end_line)


class HunkDecision(Enum):
    """Review state of a hunk."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Hunk:
    """A located block under review."""

    located_block: LocatedBlock
    decision: HunkDecision = HunkDecision.PENDING
    edited_lines: List[str] | None = None  # Reviewer's own replacement, if any
    user_edit_diff: str | None = None  # Unified diff of proposed vs edited replacement

    @property
    def block_id(self) -> str:
        """Identifier of the originating block."""
        return self.located_block.block_id

    @property
    def location(self) -> LocationResult:
        """Location result for this hunk."""
        return self.located_block.location

    @property
    def is_located(self) -> bool:
        """True if the hunk has a target range in the file."""
        return self.located_block.location.found

    @property
    def is_resolved(self) -> bool:
        """True once the hunk has been accepted or rejected."""
        return self.decision != HunkDecision.PENDING

    def replacement_lines(self) -> List[str]:
        """Lines written in place of the found lines when accepted."""
        if self.edited_lines is not None:
            return list(self.edited_lines)

        return list(self.located_block.replace_lines)

    def preview(self) -> str:
        """
        Build a unified diff of the found lines against the replacement.

        Returns:
            Unified diff text, empty if the hunk was not located
        """
        if not self.is_located:
            return ""

        diff_lines = difflib.unified_diff(
            self.location.found_lines,
            self.replacement_lines(),
            fromfile=f"{self.block_id} (current)",
            tofile=f"{self.block_id} (proposed)",
            lineterm=""
        )
        return "\n".join(diff_lines)


@dataclass
class EditSessionResult:
    """Outcome of finalizing an edit session."""

    success: bool
    content: str | None = None
    summary: str = ""
    error: str | None = None
