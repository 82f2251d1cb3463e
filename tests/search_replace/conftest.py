"""Shared fixtures and utilities for search/replace tests."""

import pytest

from search_replace.search_replace_block_locator import BlockLocator
from search_replace.search_replace_config import LocatorConfig
from search_replace.search_replace_parser import DiffParser
from search_replace.search_replace_search_engine import SearchEngine


def make_block(search: str, replace: str) -> str:
    """Build one SEARCH/REPLACE block from search and replace text."""
    parts = ["<<<<<<< SEARCH"]
    if search:
        parts.append(search)

    parts.append("=======")
    if replace:
        parts.append(replace)

    parts.append(">>>>>>> REPLACE")
    return "\n".join(parts)


def make_diff(*blocks: tuple) -> str:
    """Build a diff from (search, replace) pairs."""
    return "\n\n".join(make_block(search, replace) for search, replace in blocks)


@pytest.fixture
def diff_builder():
    """Provide a function that builds a diff from (search, replace) pairs."""
    return make_diff


@pytest.fixture
def parser():
    """Provide a parser with default settings."""
    return DiffParser()


@pytest.fixture
def engine():
    """Provide a search engine with default settings."""
    return SearchEngine()


@pytest.fixture
def strict_engine():
    """Provide a search engine with fuzzy matching disabled."""
    return SearchEngine(LocatorConfig(enable_fuzzy_matching=False))


@pytest.fixture
def locator():
    """Provide a block locator with default settings."""
    return BlockLocator()


@pytest.fixture
def python_source():
    """Provide a small Python file."""
    return (
        "def greet():\n"
        "    print('hi')\n"
        "\n"
        "def leave():\n"
        "    print('bye')\n"
    )
