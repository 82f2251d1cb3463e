"""
SEARCH/REPLACE diff parsing, location and review.

This package turns SEARCH/REPLACE blocks written by a language model into
reviewable, line-addressed edits: blocks are parsed leniently, located in
the target file with tiered exact-to-fuzzy matching, and applied through an
edit session that accepts or rejects each hunk independently.
"""

from search_replace.search_replace_block_locator import BlockLocator
from search_replace.search_replace_config import (
    EditSessionConfig,
    FeedbackConfig,
    LocatorConfig,
    ParserConfig,
)
from search_replace.search_replace_exceptions import (
    SearchReplaceConfigError,
    SearchReplaceError,
    SearchReplaceFileError,
    SearchReplaceFileNotFoundError,
    SearchReplaceParseError,
    SearchReplaceSessionError,
    SearchReplaceValidationError,
)
from search_replace.search_replace_file_provider import FileProvider, LocalFileProvider
from search_replace.search_replace_issue_tracker import IssueSeverity, IssueTracker, IssueType, ParseIssue
from search_replace.search_replace_parser import DiffParser
from search_replace.search_replace_search_engine import SearchEngine
from search_replace.search_replace_session import EditSession
from search_replace.search_replace_string_utils import (
    NormalizeOptions,
    calculate_similarity,
    compare_lines,
    detect_differences,
    levenshtein_distance,
    normalize_aggressive,
    normalize_for_code,
    normalize_punctuation,
    normalize_string,
)
from search_replace.search_replace_types import (
    DiffBlock,
    DifferenceType,
    EditSessionResult,
    Hunk,
    HunkDecision,
    LineMatchDetail,
    LocatedBlock,
    LocationResult,
    MatchType,
    SearchMetadata,
    UsedRange,
)

__all__ = [
    # Exceptions
    'SearchReplaceError',
    'SearchReplaceParseError',
    'SearchReplaceValidationError',
    'SearchReplaceSessionError',
    'SearchReplaceConfigError',
    'SearchReplaceFileError',
    'SearchReplaceFileNotFoundError',
    # Types
    'MatchType',
    'DifferenceType',
    'LineMatchDetail',
    'SearchMetadata',
    'LocationResult',
    'DiffBlock',
    'LocatedBlock',
    'UsedRange',
    'HunkDecision',
    'Hunk',
    'EditSessionResult',
    'IssueType',
    'IssueSeverity',
    'ParseIssue',
    # Configuration
    'ParserConfig',
    'LocatorConfig',
    'FeedbackConfig',
    'EditSessionConfig',
    # String utilities
    'NormalizeOptions',
    'normalize_string',
    'normalize_for_code',
    'normalize_aggressive',
    'normalize_punctuation',
    'levenshtein_distance',
    'calculate_similarity',
    'compare_lines',
    'detect_differences',
    # Core classes
    'IssueTracker',
    'DiffParser',
    'SearchEngine',
    'BlockLocator',
    'EditSession',
    'FileProvider',
    'LocalFileProvider',
]
