"""Configuration for search/replace edit sessions."""

from dataclasses import dataclass, field, fields
import json
from typing import Any, Dict

from search_replace.search_replace_exceptions import SearchReplaceConfigError


@dataclass
class ParserConfig:
    """
    Settings for the SEARCH/REPLACE diff parser.

    Attributes:
        track_issues: Record non-fatal parse issues for author feedback
        extract_inline_content: Use content found on a marker line as a block line
    """
    track_issues: bool = True
    extract_inline_content: bool = True


@dataclass
class LocatorConfig:
    """
    Settings for locating search fragments in a file.

    Attributes:
        fuzzy_threshold: Minimum overall score (0.0-1.0) for a fuzzy candidate to be accepted
        enable_fuzzy_matching: Allow fuzzy tiers to be accepted at all
        early_termination_score: Stop scanning once a candidate reaches this score (None scans everything)
    """
    fuzzy_threshold: float = 0.8
    enable_fuzzy_matching: bool = True
    early_termination_score: float | None = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.fuzzy_threshold <= 1.0:
            raise SearchReplaceConfigError(
                f"fuzzy_threshold must be between 0.0 and 1.0, got {self.fuzzy_threshold}"
            )

        if self.early_termination_score is not None and not 0.0 <= self.early_termination_score <= 1.0:
            raise SearchReplaceConfigError(
                f"early_termination_score must be between 0.0 and 1.0, got {self.early_termination_score}"
            )


@dataclass
class FeedbackConfig:
    """Which sections appear in a session summary."""
    include_parser_feedback: bool = True
    include_locator_feedback: bool = True
    include_session_summary: bool = True
    include_final_diff: bool = True


@dataclass
class EditSessionConfig:
    """
    Settings for one edit session.

    Attributes:
        parser: Parser settings
        locator: Locator settings
        feedback: Summary settings
        auto_approve: Accept every locatable hunk as soon as the session is created
    """
    parser: ParserConfig = field(default_factory=ParserConfig)
    locator: LocatorConfig = field(default_factory=LocatorConfig)
    feedback: FeedbackConfig = field(default_factory=FeedbackConfig)
    auto_approve: bool = False

    @classmethod
    def create_default(cls) -> "EditSessionConfig":
        """Create a configuration with all defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditSessionConfig":
        """
        Build a configuration from a nested dictionary.

        Missing keys keep their defaults.

        Args:
            data: Dictionary with optional 'parser', 'locator', 'feedback' and 'auto_approve' keys

        Returns:
            EditSessionConfig with the given values

        Raises:
            SearchReplaceConfigError: If unknown keys or invalid values are found
        """
        sections = {
            "parser": ParserConfig,
            "locator": LocatorConfig,
            "feedback": FeedbackConfig,
        }

        unknown = set(data) - set(sections) - {"auto_approve"}
        if unknown:
            raise SearchReplaceConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        kwargs: Dict[str, Any] = {}
        for name, section_cls in sections.items():
            section_data = data.get(name, {})
            if not isinstance(section_data, dict):
                raise SearchReplaceConfigError(f"'{name}' must be an object")

            allowed = {f.name for f in fields(section_cls)}
            unknown = set(section_data) - allowed
            if unknown:
                raise SearchReplaceConfigError(
                    f"Unknown keys in '{name}' configuration: {', '.join(sorted(unknown))}"
                )

            kwargs[name] = section_cls(**section_data)

        if "auto_approve" in data:
            kwargs["auto_approve"] = bool(data["auto_approve"])

        return cls(**kwargs)

    @classmethod
    def load(cls, path: str) -> "EditSessionConfig":
        """
        Load configuration from a JSON file.

        Args:
            path: Path to the configuration file

        Returns:
            EditSessionConfig with loaded values

        Raises:
            SearchReplaceConfigError: If the file cannot be read or contains invalid values
        """
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        except json.JSONDecodeError as e:
            raise SearchReplaceConfigError(f"Invalid JSON in configuration file {path}: {str(e)}") from e

        except OSError as e:
            raise SearchReplaceConfigError(f"Failed to read configuration file {path}: {str(e)}") from e

        if not isinstance(data, dict):
            raise SearchReplaceConfigError(f"Configuration file {path} must contain a JSON object")

        return cls.from_dict(data)
