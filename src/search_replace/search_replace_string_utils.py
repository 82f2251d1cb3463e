"""
Text normalization and similarity primitives for locating search fragments.

LLM-written search text often differs from the file in quote style,
whitespace, case, HTML escaping or punctuation spacing.  The functions here
fold those differences away and grade how closely two lines agree.
"""

from dataclasses import dataclass
import html
import re
from typing import Callable, List, Set, Tuple

from search_replace.search_replace_types import DifferenceType, MatchType


EXACT_WHITESPACE_SCORE = 0.99
PUNCTUATION_SCORE = 0.95
CASE_INSENSITIVE_SCORE = 0.90
FUZZY_HIGH_THRESHOLD = 0.85
FUZZY_MEDIUM_THRESHOLD = 0.70
FUZZY_LOW_THRESHOLD = 0.50

_TYPOGRAPHIC_CHARS = {
    "\u2026": "...",  # Ellipsis
    "\u2014": "-",  # Em dash
    "\u2013": "-",  # En dash
    "\u00a0": " ",  # Non-breaking space
}

_SMART_QUOTES = {
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": "'",
}

_HTML_ENTITY_RE = re.compile(r"&(?:lt|gt|quot|apos|amp|#\d+|#[xX][0-9a-fA-F]+);")
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_COMMA_RE = re.compile(r",\s*$")
_TRAILING_SEMICOLON_RE = re.compile(r";\s*$")
_COMMA_RE = re.compile(r"\s*,\s*")
_SEMICOLON_RE = re.compile(r"\s*;\s*")
_BRACKET_RE = re.compile(r"\s*([()\[\]{}])\s*")


@dataclass
class NormalizeOptions:
    """
    Which normalization stages to apply.

    Attributes:
        typographic_chars: Fold ellipsis, dashes and non-breaking spaces to ASCII
        html_entities: Decode HTML entities such as &lt; and &amp;
        smart_quotes: Fold curly quotes to straight quotes
        extra_whitespace: Collapse whitespace runs to a single space
        trim: Strip leading and trailing whitespace
        normalize_case: Convert to lowercase
    """
    typographic_chars: bool = True
    html_entities: bool = True
    smart_quotes: bool = True
    extra_whitespace: bool = True
    trim: bool = True
    normalize_case: bool = False


_CODE_OPTIONS = NormalizeOptions()
_AGGRESSIVE_OPTIONS = NormalizeOptions(normalize_case=True)


def _translate(text: str, mapping: dict[str, str]) -> str:
    for source, target in mapping.items():
        if source in text:
            text = text.replace(source, target)

    return text


def decode_html_entities(text: str) -> str:
    """Decode the HTML entities commonly found in copied code."""
    if "&" not in text:
        return text

    return _HTML_ENTITY_RE.sub(lambda m: html.unescape(m.group(0)), text)


def normalize_string(text: str | None, options: NormalizeOptions | None = None) -> str:
    """
    Normalize text for comparison.

    Stages run in a fixed order: typographic characters, HTML entities,
    smart quotes, whitespace collapsing and trimming, case folding.

    Args:
        text: Input text; None normalizes to an empty string
        options: Stages to apply (defaults to everything except case folding)

    Returns:
        Normalized text
    """
    if not text:
        return ""

    if options is None:
        options = _CODE_OPTIONS

    normalized = text

    if options.typographic_chars:
        normalized = _translate(normalized, _TYPOGRAPHIC_CHARS)

    if options.html_entities:
        normalized = decode_html_entities(normalized)

    if options.smart_quotes:
        normalized = _translate(normalized, _SMART_QUOTES)

    if options.extra_whitespace:
        normalized = _WHITESPACE_RE.sub(" ", normalized)

    if options.trim:
        normalized = normalized.strip()

    if options.normalize_case:
        normalized = normalized.casefold()

    return normalized


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_for_code(text: str | None) -> str:
    """Normalize characters and whitespace while preserving case."""
    return normalize_string(text, _CODE_OPTIONS)


def normalize_aggressive(text: str | None) -> str:
    """Normalize characters, whitespace and case for fuzzy matching."""
    return normalize_string(text, _AGGRESSIVE_OPTIONS)


def normalize_punctuation(line: str) -> str:
    """
    Normalize punctuation spacing as code formatters commonly change it.

    Drops a trailing comma or semicolon, puts exactly one space after commas
    and semicolons, and removes spaces around brackets.

    Args:
        line: Input line

    Returns:
        Line with normalized punctuation
    """
    line = _TRAILING_COMMA_RE.sub("", line)
    line = _TRAILING_SEMICOLON_RE.sub("", line)
    line = _COMMA_RE.sub(", ", line)
    line = _SEMICOLON_RE.sub("; ", line)
    return _BRACKET_RE.sub(r"\1", line)


def levenshtein_distance(str1: str, str2: str, max_distance: int | None = None) -> int:
    """
    Compute the edit distance between two strings.

    Args:
        str1: First string
        str2: Second string
        max_distance: If given, stop once the distance is known to exceed this
            value and return max_distance + 1

    Returns:
        Minimum number of single-character insertions, deletions and substitutions
    """
    if str1 == str2:
        return 0

    len1 = len(str1)
    len2 = len(str2)

    if max_distance is not None and abs(len1 - len2) > max_distance:
        return max_distance + 1

    if len1 == 0:
        return len2

    if len2 == 0:
        return len1

    # Keep the shorter string in the inner loop
    if len1 < len2:
        str1, str2 = str2, str1
        len1, len2 = len2, len1

    previous = list(range(len2 + 1))
    for i in range(1, len1 + 1):
        current = [i] + [0] * len2
        char1 = str1[i - 1]
        for j in range(1, len2 + 1):
            cost = 0 if char1 == str2[j - 1] else 1
            current[j] = min(
                previous[j] + 1,  # Deletion
                current[j - 1] + 1,  # Insertion
                previous[j - 1] + cost  # Substitution
            )

        if max_distance is not None and min(current) > max_distance:
            return max_distance + 1

        previous = current

    return previous[len2]


def calculate_similarity(str1: str, str2: str, min_similarity: float = 0.0) -> float:
    """
    Calculate a similarity ratio from the edit distance.

    Args:
        str1: First string
        str2: Second string
        min_similarity: Scores below this value may be reported as an upper
            bound rather than computed exactly

    Returns:
        1.0 for identical strings, 0.0 if exactly one is empty, otherwise
        1 - distance / max(len)
    """
    if str1 == str2:
        return 1.0

    max_length = max(len(str1), len(str2), 1)
    if not str1 or not str2:
        return 0.0

    max_distance = None
    if min_similarity > 0.0:
        max_distance = int((1.0 - min_similarity) * max_length + 1e-9)

    distance = levenshtein_distance(str1, str2, max_distance)
    return 1.0 - distance / max_length


@dataclass(frozen=True)
class LineForms:
    """Precomputed normalized forms of one line."""

    raw: str
    whitespace: str
    punctuation: str
    aggressive: str
    folded: str


def line_forms(line: str) -> LineForms:
    """
    Compute every normalized form compare_lines needs for a line.

    Args:
        line: Raw line

    Returns:
        LineForms for the line
    """
    aggressive = normalize_aggressive(line)
    return LineForms(
        raw=line,
        whitespace=normalize_whitespace(line),
        punctuation=normalize_punctuation(normalize_for_code(line)),
        aggressive=aggressive,
        folded=normalize_punctuation(aggressive)
    )


def score_line_forms(
    expected: LineForms,
    found: LineForms,
    min_similarity: float = 0.0
) -> Tuple[MatchType, float]:
    """
    Grade two precomputed lines into a match tier and score.

    Args:
        expected: Forms of the line being searched for
        found: Forms of the line found in the file
        min_similarity: Fuzzy scores below this value may be approximate

    Returns:
        Tuple of (match type, score)
    """
    if expected.raw == found.raw:
        return MatchType.EXACT, 1.0

    if expected.whitespace == found.whitespace:
        return MatchType.EXACT_WHITESPACE, EXACT_WHITESPACE_SCORE

    if expected.punctuation == found.punctuation:
        return MatchType.PUNCTUATION, PUNCTUATION_SCORE

    if expected.folded == found.folded:
        return MatchType.CASE_INSENSITIVE, CASE_INSENSITIVE_SCORE

    similarity = calculate_similarity(expected.aggressive, found.aggressive, min_similarity)
    return classify_similarity(similarity), similarity


def classify_similarity(similarity: float) -> MatchType:
    """Map a similarity score onto the fuzzy tiers."""
    if similarity >= FUZZY_HIGH_THRESHOLD:
        return MatchType.FUZZY_HIGH

    if similarity >= FUZZY_MEDIUM_THRESHOLD:
        return MatchType.FUZZY_MEDIUM

    if similarity >= FUZZY_LOW_THRESHOLD:
        return MatchType.FUZZY_LOW

    return MatchType.NO_MATCH


def _fold_quotes(text: str) -> str:
    return _translate(text, _SMART_QUOTES).replace("'", '"').replace("`", '"')


_DIFFERENCE_NEUTRALIZERS: List[Tuple[DifferenceType, Callable[[str], str]]] = [
    (DifferenceType.CASE, str.casefold),
    (DifferenceType.QUOTE_STYLE, _fold_quotes),
    (DifferenceType.HTML_ENTITIES, decode_html_entities),
    (DifferenceType.PUNCTUATION, normalize_punctuation),
]


def detect_differences(expected: str, found: str) -> Set[DifferenceType]:
    """
    Work out which kinds of difference separate two lines.

    Each kind is checked independently: it is reported when neutralizing
    just that kind brings the lines closer together.

    Args:
        expected: Line being searched for
        found: Line found in the file

    Returns:
        Set of difference types present
    """
    differences: Set[DifferenceType] = set()
    if expected == found:
        return differences

    ws_expected = normalize_whitespace(expected)
    ws_found = normalize_whitespace(found)
    if ws_expected == ws_found or levenshtein_distance(ws_expected, ws_found) < levenshtein_distance(expected, found):
        differences.add(DifferenceType.WHITESPACE)

    if ws_expected == ws_found:
        return differences

    base_distance = levenshtein_distance(ws_expected, ws_found)
    for difference_type, neutralize in _DIFFERENCE_NEUTRALIZERS:
        if levenshtein_distance(neutralize(ws_expected), neutralize(ws_found)) < base_distance:
            differences.add(difference_type)

    return differences


def compare_lines(expected: str, found: str) -> Tuple[MatchType, float, Set[DifferenceType]]:
    """
    Compare two lines, classifying them into a match tier.

    Tiers are tried from best to worst: exact, whitespace-only, punctuation
    spacing, case-insensitive, then fuzzy similarity over aggressively
    normalized text.

    Args:
        expected: Line being searched for
        found: Line found in the file

    Returns:
        Tuple of (match type, score, differences)
    """
    match_type, score = score_line_forms(line_forms(expected), line_forms(found))
    if match_type == MatchType.EXACT:
        return match_type, score, set()

    return match_type, score, tier_differences(match_type, expected, found)


def tier_differences(match_type: MatchType, expected: str, found: str) -> Set[DifferenceType]:
    """
    Detect differences for a line pair, including the tag implied by its tier.

    Args:
        match_type: Tier the pair was graded into
        expected: Line being searched for
        found: Line found in the file

    Returns:
        Set of difference types present
    """
    differences = detect_differences(expected, found)
    if match_type == MatchType.EXACT_WHITESPACE:
        differences.add(DifferenceType.WHITESPACE)

    elif match_type == MatchType.CASE_INSENSITIVE:
        differences.add(DifferenceType.CASE)

    return differences
