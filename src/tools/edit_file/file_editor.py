#!/usr/bin/env python3
"""
File Editor - Command-line tool for applying SEARCH/REPLACE diffs to a file.

Blocks are located with tiered exact-to-fuzzy matching, so diffs written by
a language model still apply when whitespace, quotes or case drift slightly.

Usage:
    python -m tools.edit_file --file <target_file> --diff <diff_file> [options]

Options:
    --file PATH             File to edit (required)
    --diff PATH             SEARCH/REPLACE diff file (required)
    --apply                 Actually write the result (default is dry-run)
    --backup                Create backup before applying (file.bak)
    --interactive           Review each hunk before applying
    --fuzzy-threshold N     Minimum score for fuzzy matches (default: 0.8)
    --no-fuzzy              Only accept exact and whitespace-only matches
    --config PATH           JSON edit session configuration
    --verbose               Show detailed output
    --no-color              Disable colored output
    --help                  Show this help message
"""

import argparse
from dataclasses import replace
import logging
from pathlib import Path
import shutil
import sys
import traceback
from typing import Callable, List

from search_replace import (
    EditSession,
    EditSessionConfig,
    FileProvider,
    HunkDecision,
    LocalFileProvider,
    LocatorConfig,
    SearchReplaceError,
    SearchReplaceSessionError,
    SearchReplaceValidationError,
)


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'

    @classmethod
    def disable(cls) -> None:
        """Disable colors (for non-terminal output)."""
        cls.RESET = ''
        cls.BOLD = ''
        cls.RED = ''
        cls.GREEN = ''
        cls.YELLOW = ''
        cls.BLUE = ''
        cls.CYAN = ''


def _colorize_diff(diff_text: str) -> str:
    lines = []
    for line in diff_text.split("\n"):
        if line.startswith(("+++", "---")):
            lines.append(f"{Colors.BOLD}{line}{Colors.RESET}")

        elif line.startswith("+"):
            lines.append(f"{Colors.GREEN}{line}{Colors.RESET}")

        elif line.startswith("-"):
            lines.append(f"{Colors.RED}{line}{Colors.RESET}")

        elif line.startswith("@@"):
            lines.append(f"{Colors.CYAN}{line}{Colors.RESET}")

        else:
            lines.append(line)

    return "\n".join(lines)


class TerminalReviewer:
    """
    Terminal front end for reviewing the hunks of an edit session.

    Commands:
        a  accept the current hunk
        r  reject the current hunk
        e  replace the current hunk's lines with typed text, then accept it
        n  move to the next hunk
        p  move to the previous hunk
        A  accept every located pending hunk
        R  reject every pending hunk
        q  quit without finishing the review
    """

    def __init__(
        self,
        session: EditSession,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print
    ):
        """
        Initialize the reviewer.

        Args:
            session: Session to review
            input_func: Reads one line of user input given a prompt
            output_func: Writes one message
        """
        self._session = session
        self._input = input_func
        self._output = output_func

    def review(self) -> bool:
        """
        Run the review loop until every hunk is decided or the user quits.

        Returns:
            True if the review was completed, False if the user quit
        """
        while not self._session.is_complete():
            self._show_current()
            command = self._input("[a]ccept [r]eject [e]dit [n]ext [p]rev [A]ccept all [R]eject all [q]uit: ").strip()

            try:
                if command == "q":
                    return False

                if command == "a":
                    self._session.accept(self._session.cursor)
                    self._move_to_pending()

                elif command == "r":
                    self._session.reject(self._session.cursor)
                    self._move_to_pending()

                elif command == "e":
                    self._edit_current()

                elif command == "n":
                    self._session.next()

                elif command == "p":
                    self._session.prev()

                elif command == "A":
                    self._session.accept_all()
                    self._move_to_pending()

                elif command == "R":
                    self._session.reject_all()

                else:
                    self._output(f"{Colors.YELLOW}Unknown command: {command!r}{Colors.RESET}")

            except SearchReplaceSessionError as e:
                self._output(f"{Colors.RED}Error:{Colors.RESET} {e}")

        return True

    def _show_current(self) -> None:
        hunk = self._session.current_hunk()
        if hunk is None:
            return

        total = len(self._session.hunks())
        location = hunk.location
        self._output(
            f"\n{Colors.BOLD}{hunk.block_id}{Colors.RESET} "
            f"({self._session.cursor + 1} of {total}, {hunk.decision.value})"
        )

        if not hunk.is_located:
            self._output(f"{Colors.RED}Could not be located:{Colors.RESET} {location.error}")
            self._output("This hunk can only be rejected")
            return

        self._output(
            f"Lines {location.start_line}-{location.end_line}, "
            f"{location.overall_match_type.value} match, {location.confidence}% confidence"
        )
        self._output(_colorize_diff(hunk.preview()))

    def _edit_current(self) -> None:
        self._output("Enter replacement lines, ending with a line containing only '.'")
        lines: List[str] = []
        while True:
            line = self._input("")
            if line == ".":
                break

            lines.append(line)

        index = self._session.cursor
        self._session.edit_hunk(index, lines)
        self._session.accept(index)
        self._move_to_pending()

    def _move_to_pending(self) -> None:
        """Move the cursor to the next pending hunk, wrapping to the start."""
        hunks = self._session.hunks()
        cursor = self._session.cursor
        order = list(range(cursor + 1, len(hunks))) + list(range(0, cursor + 1))
        target = next((i for i in order if hunks[i].decision == HunkDecision.PENDING), None)
        if target is None:
            return

        while self._session.cursor < target:
            self._session.next()

        while self._session.cursor > target:
            self._session.prev()


class FileEditor:
    """
    Main editor application.

    Coordinates:
    - Loading configuration
    - Reading the target file and the diff
    - Running an edit session, interactively or not
    - Writing results
    """

    def __init__(self, args: argparse.Namespace, file_provider: FileProvider | None = None):
        """
        Initialize the editor with command-line arguments.

        Args:
            args: Parsed command-line arguments
            file_provider: File access (local filesystem if not given)
        """
        self.args = args
        self.target_file = Path(args.file)
        self.diff_file = Path(args.diff)
        self.verbose = args.verbose
        self._provider = file_provider or LocalFileProvider(create_parents=True)
        self._logger = logging.getLogger("FileEditor")

        # Disable colors if not in terminal or if explicitly disabled
        if not sys.stdout.isatty() or args.no_color:
            Colors.disable()

    def run(self) -> int:
        """
        Run the editor.

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        try:
            config = self._load_config()
            diff_text = self._provider.read(str(self.diff_file))

            is_new_file = not self._provider.exists(str(self.target_file))
            original_content = "" if is_new_file else self._provider.read(str(self.target_file))

            session = EditSession(original_content, diff_text, config)
            if is_new_file:
                self._check_new_file(session)

            self._show_session_info(session, is_new_file)

            if not self._review(session):
                self._print_warning("No changes were made")
                return 1

            result = session.finalize()
            print(f"\n{result.summary}")

            if not result.success or result.content is None:
                self._print_error(result.error or "Edit failed")
                return 1

            if not self.args.apply:
                self._show_dry_run_message()
                return 0

            return self._write_result(result.content, is_new_file)

        except KeyboardInterrupt:
            self._print_error("\nInterrupted by user")
            return 130

        except SearchReplaceError as e:
            self._print_error(str(e))
            return 1

        except Exception as e:
            self._print_error(f"Unexpected error: {e}")
            if self.verbose:
                traceback.print_exc()

            return 1

    def _load_config(self) -> EditSessionConfig:
        """Build the session configuration from the config file and flags."""
        config = EditSessionConfig.load(self.args.config) if self.args.config else EditSessionConfig.create_default()

        locator = config.locator
        if self.args.fuzzy_threshold is not None or self.args.no_fuzzy:
            locator = LocatorConfig(
                fuzzy_threshold=(
                    self.args.fuzzy_threshold if self.args.fuzzy_threshold is not None else locator.fuzzy_threshold
                ),
                enable_fuzzy_matching=locator.enable_fuzzy_matching and not self.args.no_fuzzy,
                early_termination_score=locator.early_termination_score
            )

        return replace(config, locator=locator)

    def _check_new_file(self, session: EditSession) -> None:
        """
        Check that a diff for a missing file only supplies whole-file content.

        Raises:
            SearchReplaceValidationError: If the diff has a block with search content
        """
        blocks = session.blocks()
        if len(blocks) == 1 and blocks[0].is_addition:
            return

        raise SearchReplaceValidationError(
            f"Target file not found: {self.target_file}. "
            "A new file needs a single block with an empty SEARCH section",
            {'phase': 'validation', 'reason': 'missing_file', 'path': str(self.target_file)}
        )

    def _review(self, session: EditSession) -> bool:
        """
        Decide every hunk.

        Non-interactive runs accept every located hunk and refuse to continue
        if any block could not be located.

        Returns:
            True if the session is ready to finalize
        """
        if self.args.interactive:
            return TerminalReviewer(session).review()

        session.accept_all()
        failed = [hunk for hunk in session.hunks() if not hunk.is_located]
        if failed:
            for hunk in failed:
                self._print_error(f"{hunk.block_id} could not be located: {hunk.location.error}")

            feedback = session.locator_feedback()
            if feedback:
                print(f"\n{feedback}")

            return False

        return True

    def _show_session_info(self, session: EditSession, is_new_file: bool) -> None:
        """Display information about the diff."""
        hunks = session.hunks()
        located = sum(1 for hunk in hunks if hunk.is_located)
        print(f"\n{Colors.BOLD}Edit Information:{Colors.RESET}")
        print(f"  Target file: {Colors.CYAN}{self.target_file}{Colors.RESET}{' (new)' if is_new_file else ''}")
        print(f"  Diff file:   {Colors.CYAN}{self.diff_file}{Colors.RESET}")
        print(f"  Blocks:      {Colors.CYAN}{len(hunks)}{Colors.RESET}")
        print(f"  Located:     {Colors.CYAN}{located}{Colors.RESET}")

        if self.verbose:
            print(f"\n{Colors.BOLD}Block Details:{Colors.RESET}")
            for hunk in hunks:
                location = hunk.location
                if hunk.is_located:
                    print(
                        f"  {hunk.block_id}: lines {location.start_line}-{location.end_line}, "
                        f"{location.overall_match_type.value} ({location.confidence}%)"
                    )

                else:
                    print(f"  {hunk.block_id}: {Colors.RED}not located{Colors.RESET} ({location.error})")

    def _write_result(self, content: str, is_new_file: bool) -> int:
        """Write the edited content to the target file."""
        print(f"\n{Colors.BOLD}Applying changes...{Colors.RESET}")

        backup_file = self.target_file.with_suffix(self.target_file.suffix + '.bak')
        if self.args.backup and not is_new_file:
            shutil.copy2(self.target_file, backup_file)
            self._print_verbose(f"Created backup: {backup_file}")

        self._provider.write(str(self.target_file), content)
        self._logger.debug("Wrote edited content to %s", self.target_file)

        print(f"{Colors.GREEN}Changes applied successfully{Colors.RESET}")
        print(f"  {'Created' if is_new_file else 'Modified'}: {Colors.CYAN}{self.target_file}{Colors.RESET}")

        if self.args.backup and not is_new_file:
            print(f"  Backup:   {Colors.CYAN}{backup_file}{Colors.RESET}")

        return 0

    def _show_dry_run_message(self) -> None:
        """Show message about dry-run mode."""
        print(f"\n{Colors.YELLOW}Dry-run mode: No changes were made{Colors.RESET}")
        print(f"  Use {Colors.BOLD}--apply{Colors.RESET} to actually write the changes")
        print(f"  Use {Colors.BOLD}--backup{Colors.RESET} to create a backup before applying")

    def _print_error(self, message: str) -> None:
        """Print error message."""
        print(f"{Colors.RED}Error:{Colors.RESET} {message}", file=sys.stderr)

    def _print_warning(self, message: str) -> None:
        """Print warning message."""
        print(f"{Colors.YELLOW}Warning:{Colors.RESET} {message}")

    def _print_verbose(self, message: str) -> None:
        """Print verbose message."""
        if self.verbose:
            print(f"{Colors.BLUE}[verbose]{Colors.RESET} {message}")


def parse_arguments(argv: List[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Apply SEARCH/REPLACE diffs with tiered fuzzy matching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Dry run (default) - show what would happen
  python -m tools.edit_file --file src/example.py --diff changes.txt

  # Apply the changes
  python -m tools.edit_file --file src/example.py --diff changes.txt --apply

  # Apply with backup
  python -m tools.edit_file --file src/example.py --diff changes.txt --apply --backup

  # Review each hunk before applying
  python -m tools.edit_file --file src/example.py --diff changes.txt --interactive --apply

  # Only accept exact and whitespace-only matches
  python -m tools.edit_file --file src/example.py --diff changes.txt --no-fuzzy
        """
    )

    parser.add_argument(
        '--file',
        required=True,
        help='File to edit'
    )

    parser.add_argument(
        '--diff',
        required=True,
        help='SEARCH/REPLACE diff file'
    )

    parser.add_argument(
        '--apply',
        action='store_true',
        help='Actually write the result (default is dry-run)'
    )

    parser.add_argument(
        '--backup',
        action='store_true',
        help='Create backup before applying (file.bak)'
    )

    parser.add_argument(
        '--interactive',
        action='store_true',
        help='Review each hunk before applying'
    )

    parser.add_argument(
        '--fuzzy-threshold',
        type=float,
        default=None,
        help='Minimum score for fuzzy matches, 0.0 to 1.0 (default: 0.8)'
    )

    parser.add_argument(
        '--no-fuzzy',
        action='store_true',
        help='Only accept exact and whitespace-only matches'
    )

    parser.add_argument(
        '--config',
        default=None,
        help='JSON edit session configuration file'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show detailed output'
    )

    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )

    return parser.parse_args(argv)


def main(argv: List[str] | None = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(levelname)s: %(message)s")

    editor = FileEditor(args)
    return editor.run()


if __name__ == "__main__":
    sys.exit(main())
