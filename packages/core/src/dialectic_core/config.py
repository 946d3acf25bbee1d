import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import yaml

from dialectic_core.errors import ConfigError
from dialectic_core.false_positive.catalog import pattern_from_dict
from dialectic_core.frameworks import PROFILES
from dialectic_core.models import FalsePositivePattern, PriorityRule
from dialectic_core.prioritizer import rule_from_dict
from dialectic_core.strategy import StrategySelector

logger = logging.getLogger(__name__)

CONFIG_FILE = ".dialectic.yml"
PROVIDERS = ("anthropic", "openai")
DEFAULT_CONVENTION_PATHS = ["CONVENTIONS.md", "CONTRIBUTING.md", "docs/conventions.md"]

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "model_name": None,  # None = the provider's default model
    "max_input_tokens": 60000,  # estimated-token budget for diff content
    "max_chars_per_file": 20000,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "priority_rules": [],
    "strategies": {},
    "false_positive_patterns": [],
    "disabled_builtin_patterns": [],
    "framework_specific": {},
    "framework": None,  # None = detect from package.json
    "conventions": list(DEFAULT_CONVENTION_PATHS),
    "validate_issues": True,
    "review_draft_prs": False,
}

_LIST_KEYS = ("exclude", "priority_rules", "false_positive_patterns", "disabled_builtin_patterns", "conventions")
_MAPPING_KEYS = ("strategies", "framework_specific")
_BOOL_KEYS = ("validate_issues", "review_draft_prs")


def load_config(config_path: str = CONFIG_FILE, cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .dialectic.yml in the current directory
      3. CLI argument overrides

    Raises ConfigError when the file is not valid YAML or a value is malformed.
    A missing file is not an error.
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "conventions": list(DEFAULT_CONFIG["conventions"]),
    }

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{config_path} is not valid YAML: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level")
        config.update(file_config)
        logger.debug("Loaded config from %s", config_path)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    validate_config(config)

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    return config


def validate_config(config: dict) -> None:
    if config.get("model") not in PROVIDERS:
        raise ConfigError(f"model must be one of {', '.join(PROVIDERS)}, got {config.get('model')!r}", key="model")

    for key, minimum in (("max_input_tokens", 0), ("max_chars_per_file", 1)):
        value = config.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
            raise ConfigError(f"{key} must be an integer >= {minimum}, got {value!r}", key=key)

    for key in _LIST_KEYS:
        if not isinstance(config.get(key), list):
            raise ConfigError(f"{key} must be a list", key=key)
    for key in _MAPPING_KEYS:
        if not isinstance(config.get(key), dict):
            raise ConfigError(f"{key} must be a mapping", key=key)
    for key in _BOOL_KEYS:
        if not isinstance(config.get(key), bool):
            raise ConfigError(f"{key} must be true or false", key=key)

    framework = config.get("framework")
    if framework is not None and framework not in PROFILES:
        raise ConfigError(f"framework must be one of {', '.join(PROFILES)}, got {framework!r}", key="framework")

    # Build once so malformed entries fail at load time rather than mid-review.
    priority_rules(config)
    project_patterns(config)
    for name, fields in config["strategies"].items():
        if not isinstance(fields, dict):
            raise ConfigError(f"strategies.{name} must be a mapping", key="strategies")
    try:
        StrategySelector(config["strategies"])
    except ValueError as e:
        raise ConfigError(str(e), key="strategies") from e
    for name, overrides in config["framework_specific"].items():
        if not isinstance(overrides, dict):
            raise ConfigError(f"framework_specific.{name} must be a mapping", key="framework_specific")
        for p in overrides.get("custom_patterns") or []:
            pattern_from_dict(p)


def priority_rules(config: dict) -> list[PriorityRule]:
    rules = []
    for item in config.get("priority_rules") or []:
        if not isinstance(item, dict):
            raise ConfigError("Each priority rule must be a mapping", key="priority_rules")
        rules.append(rule_from_dict(item))
    return rules


def project_patterns(config: dict) -> list[FalsePositivePattern]:
    return [pattern_from_dict(p) for p in config.get("false_positive_patterns") or []]


def load_conventions(paths: list[str], read_file: Callable[[str], Optional[str]]) -> str:
    """
    Concatenate project convention documents.

    ``read_file`` maps a repository path to its text, or None when the file
    does not exist. Duplicate paths are read once.
    """
    sections = []
    for path in dict.fromkeys(paths):
        text = read_file(path)
        if text and text.strip():
            logger.debug("Loaded conventions from %s", path)
            sections.append(text.strip())
    if not sections:
        logger.debug("No project conventions found")
    return "\n\n---\n\n".join(sections)
