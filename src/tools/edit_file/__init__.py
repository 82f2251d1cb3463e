"""
Edit File Tool - apply SEARCH/REPLACE diffs to a file from the command line.

This package wraps an edit session in a terminal front end, with a dry-run
default, optional backups and interactive per-hunk review.
"""

from .file_editor import FileEditor, TerminalReviewer

__version__ = "1.0.0"

__all__ = [
    "FileEditor",
    "TerminalReviewer",
]
