"""Locating every block of a parsed diff in one file snapshot."""

import difflib
import logging
from typing import List, Sequence

from search_replace.search_replace_config import LocatorConfig
from search_replace.search_replace_search_engine import SearchEngine
from search_replace.search_replace_types import DiffBlock, LocatedBlock, MatchType, UsedRange


class BlockLocator:
    """
    Locates all blocks of a diff against the same file content.

    Blocks are searched in order through one SearchEngine, so each block
    can only claim lines that no earlier block in the pass has claimed.
    A block that cannot be found does not stop the others from being located.
    """

    def __init__(self, config: LocatorConfig | None = None):
        """
        Initialize the block locator.

        Args:
            config: Locator settings (defaults used if not given)
        """
        self._config = config or LocatorConfig()
        self._engine = SearchEngine(self._config)
        self._logger = logging.getLogger("BlockLocator")

    def locate_all_blocks(self, blocks: Sequence[DiffBlock], file_content: str) -> List[LocatedBlock]:
        """
        Locate each block in file content.

        Args:
            blocks: Parsed blocks, in diff order
            file_content: Current file content

        Returns:
            One LocatedBlock per input block, in the same order, including failures
        """
        file_lines = file_content.split("\n")
        located_blocks: List[LocatedBlock] = []

        for block in blocks:
            search_lines = [] if block.is_addition else list(block.search_lines)
            location = self._engine.locate_block_in_file(search_lines, file_lines)
            located_blocks.append(LocatedBlock(block, location))

            if location.found:
                self._logger.debug(
                    "%s located at lines %s-%s (%s, %d%%)",
                    block.id,
                    location.start_line,
                    location.end_line,
                    location.overall_match_type.value,
                    location.confidence
                )

            else:
                self._logger.warning("%s could not be located: %s", block.id, location.error)

        return located_blocks

    def reset_used_ranges(self) -> None:
        """Forget claimed ranges so a new pass can start."""
        self._engine.reset_used_ranges()

    def reset(self) -> None:
        """Reset the locator for a new file."""
        self.reset_used_ranges()

    def used_ranges(self) -> List[UsedRange]:
        """Get the ranges claimed in the current pass."""
        return self._engine.used_ranges()

    def get_feedback(self, located_blocks: Sequence[LocatedBlock]) -> str | None:
        """
        Describe failed and fuzzily matched blocks for the diff's author.

        Args:
            located_blocks: Results from locate_all_blocks

        Returns:
            Markdown feedback, or None if every block matched cleanly
        """
        sections: List[str] = []
        for located in located_blocks:
            location = located.location
            if not location.found:
                sections.append(self._failure_feedback(located))
                continue

            if location.overall_match_type.priority < MatchType.EXACT_WHITESPACE.priority:
                sections.append(self._fuzzy_feedback(located))

        if not sections:
            return None

        return "## ISSUES WHILE SEARCHING\n" + "\n\n".join(sections)

    def _failure_feedback(self, located: LocatedBlock) -> str:
        location = located.location
        text = (
            "### ERROR\n"
            f"{located.block_id} could not be located: {location.error}\n"
            "Search content:\n"
            f"{located.search_content}"
        )

        if location.start_line is None or not location.found_lines:
            return text

        return (
            f"{text}\n"
            "Closest match found:\n"
            f'<BESTMATCH confidence="{location.confidence}%" '
            f"startline={location.start_line} endline={location.end_line}>\n"
            f"{location.found_content}\n"
            "</BESTMATCH>"
        )

    def _fuzzy_feedback(self, located: LocatedBlock) -> str:
        location = located.location
        diff_lines = difflib.unified_diff(
            list(located.search_lines),
            location.found_lines,
            fromfile="search",
            tofile="file",
            lineterm=""
        )
        return (
            "### WARNING\n"
            f"{located.block_id} matched lines {location.start_line}-{location.end_line} "
            f"with {location.overall_match_type.value} match ({location.confidence}% confidence). "
            "Differences between the SEARCH section and the file:\n"
            + "\n".join(diff_lines)
        )
