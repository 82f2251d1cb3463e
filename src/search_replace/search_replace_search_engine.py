"""Locating search fragments inside file content."""

from dataclasses import dataclass, field
import logging
from typing import List, Sequence

from search_replace.search_replace_config import LocatorConfig
from search_replace.search_replace_string_utils import (
    EXACT_WHITESPACE_SCORE,
    FUZZY_HIGH_THRESHOLD,
    FUZZY_LOW_THRESHOLD,
    FUZZY_MEDIUM_THRESHOLD,
    LineForms,
    line_forms,
    score_line_forms,
    tier_differences,
)
from search_replace.search_replace_types import (
    LineMatchDetail,
    LocationResult,
    MatchType,
    SearchMetadata,
    UsedRange,
)


@dataclass
class _Candidate:
    """Score of one window position."""

    start_line: int  # 1-indexed
    score: float
    match_type: MatchType
    line_types: List[MatchType] = field(default_factory=list)
    line_scores: List[float] = field(default_factory=list)


class SearchEngine:
    """
    Finds the best position for a block of search lines in a file.

    Every window of the search block's length is graded line by line.  The
    winning window is chosen by match tier first, then score, then earliest
    position.  Accepted windows are remembered as used ranges so that later
    searches in the same pass cannot claim overlapping lines.
    """

    def __init__(self, config: LocatorConfig | None = None):
        """
        Initialize the search engine.

        Args:
            config: Locator settings (defaults used if not given)
        """
        self._config = config or LocatorConfig()
        self._used_ranges: List[UsedRange] = []
        self._logger = logging.getLogger("SearchEngine")

    def used_ranges(self) -> List[UsedRange]:
        """Get the ranges claimed so far in this pass."""
        return list(self._used_ranges)

    def reset_used_ranges(self) -> None:
        """Forget all claimed ranges, starting a fresh pass."""
        self._used_ranges = []

    def locate_block_in_file(self, search_lines: Sequence[str], file_lines: Sequence[str]) -> LocationResult:
        """
        Locate search lines in file lines.

        An empty search is an addition block and matches the whole file.

        Args:
            search_lines: Lines to find
            file_lines: All lines of the file

        Returns:
            LocationResult describing the best match, or why none was accepted
        """
        if not search_lines:
            return self._whole_file_result(file_lines)

        search_len = len(search_lines)
        total_lines = len(file_lines)
        if search_len > total_lines:
            return LocationResult(
                found=False,
                error=(
                    f"SEARCH block has {search_len} line(s) but the file only has {total_lines}. "
                    "To rewrite the whole file, leave the SEARCH section empty"
                )
            )

        search_forms = [line_forms(line) for line in search_lines]
        file_forms = [line_forms(line) for line in file_lines]
        metadata = SearchMetadata()
        best: _Candidate | None = None

        for start_line in range(1, total_lines - search_len + 2):
            end_line = start_line + search_len - 1
            if not self._is_position_available(start_line, end_line):
                metadata.windows_skipped += 1
                continue

            metadata.windows_evaluated += 1
            candidate = self._evaluate_position(search_forms, file_forms, start_line, best)
            if candidate is None:
                continue

            if best is None or self._is_better(candidate, best):
                best = candidate

            early_termination = self._config.early_termination_score
            if early_termination is not None and best.score >= early_termination:
                metadata.early_termination = True
                break

        if best is None:
            self._logger.debug("No available window for %d search line(s)", search_len)
            return LocationResult(found=False, error="No suitable match found", search_metadata=metadata)

        result = self._build_result(best, search_lines, file_lines, metadata)
        if not self._is_acceptable(best):
            result.found = False
            result.error = "No suitable match found"
            self._logger.warning(
                "No suitable match: best candidate at line %d scored %.2f (%s)",
                best.start_line,
                best.score,
                best.match_type.value
            )
            return result

        self._mark_range_used(best.start_line, best.start_line + search_len - 1)
        if best.match_type.is_fuzzy:
            self._logger.warning(
                "Fuzzy match at lines %d-%d scored %.2f (%s)",
                result.start_line,
                result.end_line,
                best.score,
                best.match_type.value
            )

        else:
            self._logger.debug(
                "Matched lines %d-%d (%s)", result.start_line, result.end_line, best.match_type.value
            )

        return result

    def _whole_file_result(self, file_lines: Sequence[str]) -> LocationResult:
        """
        Build the result for an addition block, which claims the entire file.

        Args:
            file_lines: All lines of the file

        Returns:
            Exact LocationResult spanning the whole file
        """
        end_line = max(len(file_lines), 1)
        self._mark_range_used(1, end_line)
        return LocationResult(
            found=True,
            start_line=1,
            end_line=end_line,
            overall_score=1.0,
            overall_match_type=MatchType.EXACT,
            confidence=100,
            found_content="\n".join(file_lines),
            found_lines=list(file_lines)
        )

    def _is_position_available(self, start_line: int, end_line: int) -> bool:
        """
        Check whether a window avoids every claimed range.

        Args:
            start_line: First line of the window (1-indexed)
            end_line: Last line of the window (1-indexed)

        Returns:
            True if the window does not overlap any used range
        """
        for used_range in self._used_ranges:
            if used_range.overlaps(start_line, end_line):
                return False

        return True

    def _mark_range_used(self, start_line: int, end_line: int) -> None:
        self._used_ranges.append(UsedRange(start_line, end_line))

    def _evaluate_position(
        self,
        search_forms: List[LineForms],
        file_forms: List[LineForms],
        start_line: int,
        best: "_Candidate | None"
    ) -> "_Candidate | None":
        """
        Grade one window.

        Windows that can no longer beat the current best are abandoned early.

        Args:
            search_forms: Normalized search lines
            file_forms: Normalized file lines
            start_line: First line of the window (1-indexed)
            best: Best candidate so far, if any

        Returns:
            Candidate for the window, or None if it was abandoned
        """
        search_len = len(search_forms)
        line_types: List[MatchType] = []
        line_scores: List[float] = []
        total_score = 0.0
        has_fuzzy_line = False

        for i, expected in enumerate(search_forms):
            min_similarity = 0.0
            if best is not None:
                # Score this line needs for the window average to still reach the best
                remaining = search_len - i - 1
                min_similarity = min(max(best.score * search_len - total_score - remaining, 0.0), 1.0)

            match_type, score = score_line_forms(expected, file_forms[start_line - 1 + i], min_similarity)
            if match_type.is_fuzzy:
                has_fuzzy_line = True
                if best is not None and not best.match_type.is_fuzzy:
                    return None

            line_types.append(match_type)
            line_scores.append(score)
            total_score += score

            if best is not None and has_fuzzy_line and total_score + (search_len - i - 1) < best.score * search_len:
                return None

        avg_score = total_score / search_len
        return _Candidate(
            start_line=start_line,
            score=avg_score,
            match_type=self._overall_match_type(line_types, avg_score),
            line_types=line_types,
            line_scores=line_scores
        )

    def _overall_match_type(self, line_types: List[MatchType], avg_score: float) -> MatchType:
        """
        Classify a window from its line tiers.

        If every line matched through normalization, the window takes the
        worst line's tier.  Otherwise the average score picks a fuzzy tier.

        Args:
            line_types: Tier of each line
            avg_score: Mean line score

        Returns:
            Overall match type for the window
        """
        if not any(line_type.is_fuzzy for line_type in line_types):
            return min(line_types, key=lambda line_type: line_type.priority)

        if avg_score >= FUZZY_HIGH_THRESHOLD:
            return MatchType.FUZZY_HIGH

        if avg_score >= FUZZY_MEDIUM_THRESHOLD:
            return MatchType.FUZZY_MEDIUM

        if avg_score >= FUZZY_LOW_THRESHOLD:
            return MatchType.FUZZY_LOW

        return MatchType.NO_MATCH

    def _is_better(self, candidate: _Candidate, best: _Candidate) -> bool:
        """
        Check whether a later candidate beats the current best.

        Tier wins over score; equal tier and score keep the earlier position.

        Args:
            candidate: Candidate found later in the scan
            best: Current best candidate

        Returns:
            True if the candidate should replace the best
        """
        if candidate.match_type.priority != best.match_type.priority:
            return candidate.match_type.priority > best.match_type.priority

        return candidate.score > best.score

    def _is_acceptable(self, candidate: _Candidate) -> bool:
        """
        Check whether a candidate is good enough to claim.

        With fuzzy matching disabled only windows scoring at least the
        exact-whitespace score are accepted.  Otherwise normalization tiers
        are always accepted and fuzzy tiers need a score at or above the
        fuzzy threshold.

        Args:
            candidate: Best candidate found

        Returns:
            True if the candidate should be accepted
        """
        if not self._config.enable_fuzzy_matching:
            return candidate.score >= EXACT_WHITESPACE_SCORE

        if not candidate.match_type.is_fuzzy:
            return True

        return candidate.match_type != MatchType.NO_MATCH and candidate.score >= self._config.fuzzy_threshold

    def _build_result(
        self,
        candidate: _Candidate,
        search_lines: Sequence[str],
        file_lines: Sequence[str],
        metadata: SearchMetadata
    ) -> LocationResult:
        """
        Build a LocationResult with per-line details for a candidate.

        Args:
            candidate: Winning (or best failed) candidate
            search_lines: Lines searched for
            file_lines: All lines of the file
            metadata: Search statistics

        Returns:
            LocationResult marked as found
        """
        start_idx = candidate.start_line - 1
        found_lines = list(file_lines[start_idx:start_idx + len(search_lines)])

        line_details: List[LineMatchDetail] = []
        for i, (expected, found) in enumerate(zip(search_lines, found_lines)):
            line_type = candidate.line_types[i]
            line_details.append(LineMatchDetail(
                line_number=candidate.start_line + i,
                expected_line=expected,
                found_line=found,
                line_score=candidate.line_scores[i],
                line_match_type=line_type,
                differences=set() if line_type == MatchType.EXACT else tier_differences(line_type, expected, found)
            ))

        return LocationResult(
            found=True,
            start_line=candidate.start_line,
            end_line=candidate.start_line + len(search_lines) - 1,
            overall_score=candidate.score,
            overall_match_type=candidate.match_type,
            confidence=int(candidate.score * 100),
            found_content="\n".join(found_lines),
            found_lines=found_lines,
            line_details=line_details,
            search_metadata=metadata
        )
