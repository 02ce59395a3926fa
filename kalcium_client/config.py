"""
Configuration management for the Kalcium test client.

Handles environment variables, command-line arguments, the optional YAML
scenario file and validation.
"""

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from .utils import logger

DEFAULT_SERVER_URL = "http://localhost:42000"
DEFAULT_TERMBASE = "Kalcium"

TRUE_VALUES = ['true', '1', 'yes', 'on']


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in TRUE_VALUES


SCENARIO_FILE_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "termbase": {"type": "string", "minLength": 1},
        "search": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "term": {"type": "string"},
                "mode": {"enum": ["Prefix", "Exact", "Contains", "Fuzzy"]},
                "start_index": {"type": "integer", "minimum": 0},
                "max_count": {"type": "integer", "minimum": 1},
            },
        },
        "entry": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "text_field_value": {"type": "string"},
                "sample_media": {"type": ["string", "null"]},
                "media_width": {"type": ["integer", "null"], "minimum": 1},
                "media_height": {"type": ["integer", "null"], "minimum": 1},
                "download_dir": {"type": ["string", "null"]},
            },
        },
        "term_request": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"comment": {"type": "string"}},
        },
        "analysis": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "segment": {"type": "string", "minLength": 1},
                "target_language_code": {"type": ["string", "null"]},
            },
        },
        "steps": {"type": "array", "items": {"type": "string"}, "minItems": 1},
    },
}


@dataclass
class ScenarioSettings:
    """Parameters of the test scenario."""

    termbase_name: str = DEFAULT_TERMBASE
    search_term: str = ""
    search_mode: str = "Prefix"
    search_start_index: int = 0
    search_max_count: int = 20
    text_field_value: str = "sample text field content"
    sample_media_path: Optional[str] = "Resources/sample.png"
    media_width: Optional[int] = 300
    media_height: Optional[int] = 300
    download_dir: Optional[str] = None
    term_request_comment: str = "This is a sample term request"
    segment_text: str = "Some sentence to analyze."
    target_language_code: Optional[str] = "en-US"
    steps: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioSettings":
        """
        Build settings from the nested scenario file layout.

        Raises:
            ValueError: If the data does not match the scenario file schema
        """
        errors = []
        for error in Draft7Validator(SCENARIO_FILE_SCHEMA).iter_errors(data):
            error_path = " -> ".join(str(p) for p in error.path) if error.path else "root"
            errors.append(f"'{error_path}': {error.message}")
        if errors:
            raise ValueError(f"Scenario file validation failed: {'; '.join(errors)}")

        settings = cls()
        search = data.get("search", {})
        entry = data.get("entry", {})
        analysis = data.get("analysis", {})
        overrides = {
            "termbase_name": data.get("termbase"),
            "search_term": search.get("term"),
            "search_mode": search.get("mode"),
            "search_start_index": search.get("start_index"),
            "search_max_count": search.get("max_count"),
            "text_field_value": entry.get("text_field_value"),
            "term_request_comment": data.get("term_request", {}).get("comment"),
            "segment_text": analysis.get("segment"),
            "steps": data.get("steps"),
        }
        for key, value in overrides.items():
            if value is not None:
                setattr(settings, key, value)
        # explicit nulls are meaningful for these
        for key, attr in (("sample_media", "sample_media_path"), ("media_width", "media_width"),
                          ("media_height", "media_height"), ("download_dir", "download_dir")):
            if key in entry:
                setattr(settings, attr, entry[key])
        if "target_language_code" in analysis:
            settings.target_language_code = analysis["target_language_code"]
        return settings

    @classmethod
    def from_file(cls, path: str) -> "ScenarioSettings":
        """Load settings from a YAML scenario file."""
        scenario_path = Path(path)
        if not scenario_path.is_file():
            raise FileNotFoundError(f"Scenario file not found: {scenario_path}")
        try:
            with open(scenario_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in scenario file {scenario_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Scenario file {scenario_path} must contain a mapping")
        logger.debug(f"Loaded scenario settings from {scenario_path}")
        return cls.from_dict(data)


@dataclass
class Config:
    """Configuration settings for the Kalcium test client."""

    # Server configuration
    server_url: str
    username: str
    password: str

    # Scenario configuration, termbase_name None means scenario file or default
    termbase_name: Optional[str] = None
    scenario_file: Optional[str] = None
    steps: List[str] = field(default_factory=list)

    # Connection configuration
    timeout: int = 30
    ignore_kalc_version: bool = False
    ssl_verify: Optional[bool] = None

    verbose: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate configuration settings."""
        errors = []

        if not self.server_url:
            errors.append("Server URL is required")
        if not self.username:
            errors.append("Username is required")
        if not self.password:
            errors.append("Password is required")
        if self.termbase_name is not None and not self.termbase_name.strip():
            errors.append("Termbase name must not be empty")
        if self.timeout <= 0:
            errors.append("Timeout must be positive")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def scenario_settings(self) -> ScenarioSettings:
        """Scenario settings from the scenario file, overridden by command-line values."""
        settings = ScenarioSettings.from_file(self.scenario_file) if self.scenario_file else ScenarioSettings()
        if self.termbase_name is not None:
            settings.termbase_name = self.termbase_name
        if self.steps:
            settings.steps = list(self.steps)
        return settings

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Config":
        """Create Config from command-line arguments."""
        return cls(
            server_url=args.server or os.getenv("KALC_SERVER_URL", DEFAULT_SERVER_URL),
            username=args.username or os.getenv("KALC_USERNAME", ""),
            password=args.password or os.getenv("KALC_PASSWORD", ""),
            termbase_name=args.termbase or os.getenv("KALC_TERMBASE"),
            scenario_file=args.scenario_file or os.getenv("KALC_SCENARIO_FILE"),
            steps=args.steps or [],
            timeout=args.timeout,
            ignore_kalc_version=args.ignore_version or _env_flag("KALC_IGNORE_VERSION"),
            verbose=args.verbose,
        )

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """Create Config from environment variables with optional overrides."""
        config_dict = {
            "server_url": os.getenv("KALC_SERVER_URL", DEFAULT_SERVER_URL),
            "username": os.getenv("KALC_USERNAME", ""),
            "password": os.getenv("KALC_PASSWORD", ""),
            "termbase_name": os.getenv("KALC_TERMBASE"),
            "scenario_file": os.getenv("KALC_SCENARIO_FILE"),
            "ignore_kalc_version": _env_flag("KALC_IGNORE_VERSION"),
        }

        config_dict.update(overrides)

        return cls(**config_dict)


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="kalcium-test-client",
        description="Exercise a Kalcium terminology server end to end",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the full scenario against a local server
  kalcium-test-client --server http://localhost:42000 -u joker -p joker

  # Use another termbase and skip the version check
  kalcium-test-client -u joker -p joker --termbase Medical --ignore-version

  # Run only some steps
  kalcium-test-client -u joker -p joker --steps login query_termbases search logout

  # Load scenario parameters from a YAML file
  kalcium-test-client -u joker -p joker --scenario-file scenario.yaml

Environment Variables:
  KALC_SERVER_URL     - Server URL (alternative to --server)
  KALC_USERNAME       - User name (alternative to --username)
  KALC_PASSWORD       - Password (alternative to --password)
  KALC_TERMBASE       - Termbase used by the scenario (alternative to --termbase)
  KALC_SCENARIO_FILE  - Scenario file (alternative to --scenario-file)
  KALC_IGNORE_VERSION - Skip the server version check (true/false)
  SSL_VERIFY          - Verify TLS certificates (default: true)
        """
    )

    server_group = parser.add_argument_group("Server")
    server_group.add_argument(
        "--server", "-s",
        help=f"Server URL (or set KALC_SERVER_URL, default: {DEFAULT_SERVER_URL})"
    )
    server_group.add_argument(
        "--username", "-u",
        help="User name (or set KALC_USERNAME environment variable)"
    )
    server_group.add_argument(
        "--password", "-p",
        help="Password (or set KALC_PASSWORD environment variable)"
    )
    server_group.add_argument(
        "--timeout",
        type=int,
        default=30,
        help="Request timeout in seconds (default: 30)"
    )
    server_group.add_argument(
        "--ignore-version",
        action="store_true",
        help="Skip the server API version check (testing only)"
    )

    scenario_group = parser.add_argument_group("Scenario")
    scenario_group.add_argument(
        "--termbase", "-t",
        help=f"Name of the termbase to test with (default: {DEFAULT_TERMBASE})"
    )
    scenario_group.add_argument(
        "--scenario-file",
        help="YAML file with scenario parameters"
    )
    scenario_group.add_argument(
        "--steps",
        nargs="+",
        help="Run only the named steps (see --list-steps)"
    )
    scenario_group.add_argument(
        "--list-steps",
        action="store_true",
        help="List the scenario steps and exit"
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )
    output_group.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    return parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.quiet:
        parsed_args.verbose = False
        logger.setLevel("ERROR")
    elif parsed_args.verbose:
        logger.setLevel("DEBUG")

    return parsed_args
