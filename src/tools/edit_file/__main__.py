"""
CLI entry point for the Edit File Tool.

This allows the tool to be run as:
    python -m tools.edit_file --file myfile.py --diff changes.txt
"""

import sys
from .file_editor import main

if __name__ == "__main__":
    sys.exit(main())
