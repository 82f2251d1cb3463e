"""Tests for the edit_file command-line tool."""

import json

import pytest

from search_replace import EditSession, HunkDecision, SearchReplaceValidationError
from tools.edit_file.file_editor import FileEditor, TerminalReviewer, main, parse_arguments


SOURCE = "def greet():\n    print('hi')\n"

DIFF = "<<<<<<< SEARCH\n    print('hi')\n=======\n    print('hello')\n>>>>>>> REPLACE\n"


@pytest.fixture
def workspace(tmp_path):
    """Provide a target file and a diff file."""
    target = tmp_path / "greet.py"
    target.write_text(SOURCE, encoding='utf-8')
    diff = tmp_path / "change.diff"
    diff.write_text(DIFF, encoding='utf-8')
    return target, diff


def _run(*args):
    return main([*args, '--no-color'])


class TestFileEditor:
    """Test the non-interactive command-line flows."""

    def test_dry_run(self, workspace, capsys):
        """Test that the default run changes nothing."""
        target, diff = workspace

        assert _run('--file', str(target), '--diff', str(diff)) == 0

        assert target.read_text(encoding='utf-8') == SOURCE
        output = capsys.readouterr().out
        assert "Dry-run mode" in output
        assert "# EDIT SESSION" in output

    def test_apply(self, workspace):
        """Test writing the edited content."""
        target, diff = workspace

        assert _run('--file', str(target), '--diff', str(diff), '--apply') == 0
        assert target.read_text(encoding='utf-8') == "def greet():\n    print('hello')\n"

    def test_apply_with_backup(self, workspace):
        """Test that a backup of the original is kept."""
        target, diff = workspace

        assert _run('--file', str(target), '--diff', str(diff), '--apply', '--backup') == 0

        backup = target.with_suffix('.py.bak')
        assert backup.read_text(encoding='utf-8') == SOURCE

    def test_create_new_file(self, tmp_path):
        """Test that a single whole-file block creates a missing file."""
        target = tmp_path / "new" / "module.py"
        diff = tmp_path / "change.diff"
        diff.write_text("<<<<<<< SEARCH\n=======\nx = 1\n>>>>>>> REPLACE\n", encoding='utf-8')

        assert _run('--file', str(target), '--diff', str(diff), '--apply') == 0
        assert target.read_text(encoding='utf-8') == "x = 1"

    def test_missing_file_needs_addition(self, tmp_path, workspace, capsys):
        """Test that a missing file cannot take a search block."""
        _, diff = workspace

        assert _run('--file', str(tmp_path / "missing.py"), '--diff', str(diff), '--apply') == 1
        assert "Target file not found" in capsys.readouterr().err
        assert not (tmp_path / "missing.py").exists()

    def test_missing_file_validation_error(self, tmp_path, workspace):
        """Test that a search block for a missing file is a validation error."""
        _, diff = workspace
        missing = tmp_path / "missing.py"
        editor = FileEditor(parse_arguments(['--file', str(missing), '--diff', str(diff), '--no-color']))
        session = EditSession("", DIFF)

        with pytest.raises(SearchReplaceValidationError, match="Target file not found") as exc_info:
            editor._check_new_file(session)

        assert exc_info.value.error_details['reason'] == 'missing_file'

    def test_all_blocks_unlocated(self, workspace, capsys):
        """Test that a diff with no locatable block is refused."""
        target, diff = workspace
        diff.write_text("<<<<<<< SEARCH\nnot in the file anywhere\n=======\nx\n>>>>>>> REPLACE\n", encoding='utf-8')

        assert _run('--file', str(target), '--diff', str(diff), '--apply') == 1
        assert "Block 1 could not be located" in capsys.readouterr().err
        assert target.read_text(encoding='utf-8') == SOURCE

    def test_missing_diff_file(self, workspace, tmp_path, capsys):
        """Test a diff path that does not exist."""
        target, _ = workspace

        assert _run('--file', str(target), '--diff', str(tmp_path / "none.diff")) == 1
        assert "File does not exist" in capsys.readouterr().err

    def test_broken_diff(self, workspace, capsys):
        """Test that parse errors are reported."""
        target, diff = workspace
        diff.write_text("<<<<<<< SEARCH\nold\n>>>>>>> REPLACE\n", encoding='utf-8')

        assert _run('--file', str(target), '--diff', str(diff), '--apply') == 1
        assert "no preceding" in capsys.readouterr().err
        assert target.read_text(encoding='utf-8') == SOURCE

    def test_unlocated_block_blocks_apply(self, workspace):
        """Test that a run with a missing block writes nothing."""
        target, diff = workspace
        diff.write_text(
            DIFF + "<<<<<<< SEARCH\nnot in the file anywhere\n=======\nx\n>>>>>>> REPLACE\n",
            encoding='utf-8'
        )

        assert _run('--file', str(target), '--diff', str(diff), '--apply') == 1
        assert target.read_text(encoding='utf-8') == SOURCE

    def test_no_fuzzy(self, workspace):
        """Test that fuzzy-only matches fail when fuzzy matching is off."""
        target, diff = workspace
        target.write_text("def greet():\n    print('hi there')\n", encoding='utf-8')

        assert _run('--file', str(target), '--diff', str(diff), '--apply', '--no-fuzzy') == 1
        assert _run('--file', str(target), '--diff', str(diff), '--apply', '--fuzzy-threshold', '0.5') == 0

    def test_invalid_threshold(self, workspace, capsys):
        """Test that an out-of-range threshold is refused."""
        target, diff = workspace

        assert _run('--file', str(target), '--diff', str(diff), '--fuzzy-threshold', '1.5') == 1
        assert "fuzzy_threshold" in capsys.readouterr().err

    def test_config_file(self, workspace, tmp_path, capsys):
        """Test loading session settings from a file."""
        target, diff = workspace
        config = tmp_path / "config.json"
        config.write_text(json.dumps({'feedback': {'include_final_diff': False}}), encoding='utf-8')

        assert _run('--file', str(target), '--diff', str(diff), '--config', str(config)) == 0
        assert "## CHANGES" not in capsys.readouterr().out


class TestTerminalReviewer:
    """Test the interactive review loop."""

    def _session(self):
        diff_text = (
            "<<<<<<< SEARCH\na\n=======\nA\n>>>>>>> REPLACE\n"
            "<<<<<<< SEARCH\nb\n=======\nB\n>>>>>>> REPLACE\n"
        )
        return EditSession("a\nb\nc", diff_text)

    def _reviewer(self, session, commands):
        inputs = iter(commands)
        output = []
        reviewer = TerminalReviewer(session, input_func=lambda prompt: next(inputs), output_func=output.append)
        return reviewer, output

    def test_accept_and_reject(self):
        """Test deciding each hunk in turn."""
        session = self._session()
        reviewer, _ = self._reviewer(session, ["a", "r"])

        assert reviewer.review()
        assert [hunk.decision for hunk in session.hunks()] == [HunkDecision.ACCEPTED, HunkDecision.REJECTED]
        assert session.finalize().content == "A\nb\nc"

    def test_quit(self):
        """Test leaving the review early."""
        session = self._session()
        reviewer, _ = self._reviewer(session, ["q"])

        assert not reviewer.review()
        assert not session.is_complete()

    def test_edit(self):
        """Test typing replacement lines for a hunk."""
        session = self._session()
        reviewer, _ = self._reviewer(session, ["e", "first", "second", ".", "R"])

        assert reviewer.review()
        assert session.finalize().content == "first\nsecond\nb\nc"

    def test_errors_and_unknown_commands(self):
        """Test that bad commands are reported and the loop continues."""
        session = self._session()
        reviewer, output = self._reviewer(session, ["x", "a", "p", "a", "A"])

        assert reviewer.review()
        assert any("Unknown command" in line for line in output)
        assert any("already been accepted" in line for line in output)
