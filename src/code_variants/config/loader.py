"""Configuration loading and merging logic."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from code_variants.config.defaults import (
    CONFIG_SEARCH_PATHS,
    ENV_ENVIRONMENT,
    ENV_MAX_DEPTH,
)
from code_variants.config.models import CodeVariantsConfig
from code_variants.errors import ConfigurationError


def find_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file.

    Args:
        explicit_path: Explicitly specified config file path (from CLI).

    Returns:
        Path to config file if found, None otherwise.
    """
    if explicit_path is not None:
        if explicit_path.exists():
            return explicit_path
        raise FileNotFoundError(f"Config file not found: {explicit_path}")

    for search_path in CONFIG_SEARCH_PATHS:
        if search_path.exists():
            return search_path

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        path: Path to the configuration file.

    Returns:
        Parsed configuration dictionary.
    """
    with open(path) as f:
        return json.load(f)


def merge_cli_overrides(
    config: CodeVariantsConfig,
    output_mode: Optional[str] = None,
    disable_parsing: Optional[bool] = None,
    disable_transforms: Optional[bool] = None,
    max_depth: Optional[int] = None,
    environment: Optional[str] = None,
    root_path: Optional[Path] = None,
    verbose: Optional[int] = None,
    log_file: Optional[Path] = None,
) -> CodeVariantsConfig:
    """Merge CLI overrides into the configuration.

    CLI arguments take precedence over config file values.

    Args:
        config: Base configuration from file.
        output_mode: Output mode override (hast, hastJson, hastGzip).
        disable_parsing: Skip parsing sources into trees.
        disable_transforms: Skip source transformers.
        max_depth: Recursion depth override.
        environment: Environment override (development or production).
        root_path: Root directory for the filesystem loader.
        verbose: Verbosity level override.
        log_file: File receiving DEBUG logs.

    Returns:
        Configuration with CLI overrides applied.
    """
    data = config.model_dump()

    if output_mode is not None:
        data["pipeline"]["output"] = output_mode
    if disable_parsing is not None:
        data["pipeline"]["disable_parsing"] = disable_parsing
    if disable_transforms is not None:
        data["pipeline"]["disable_transforms"] = disable_transforms
    if max_depth is not None:
        data["pipeline"]["max_depth"] = max_depth
    if environment is not None:
        data["pipeline"]["environment"] = environment

    if root_path is not None:
        data["loader"]["root_path"] = root_path

    if verbose is not None:
        data["output"]["verbosity"] = verbose
    if log_file is not None:
        data["output"]["log_file"] = log_file

    return CodeVariantsConfig.model_validate(data)


def load_config(
    config_path: Optional[Path] = None,
    **cli_overrides: Any,
) -> CodeVariantsConfig:
    """Load configuration with CLI overrides.

    Configuration is loaded from the following sources (in order of priority):
    1. CLI arguments (highest priority)
    2. Environment variables
    3. Config file (if found)
    4. Default values (lowest priority)

    Args:
        config_path: Explicit config file path (from --config CLI option).
        **cli_overrides: CLI argument overrides.

    Returns:
        Merged configuration object.

    Raises:
        ConfigurationError: If an environment variable holds an invalid value.
    """
    config = CodeVariantsConfig()

    found_config = find_config_file(config_path)
    if found_config is not None:
        file_data = load_config_file(found_config)
        config = CodeVariantsConfig.model_validate(file_data)

    # None means "not given on the command line"
    overrides = {key: value for key, value in cli_overrides.items() if value is not None}

    if environment := os.environ.get(ENV_ENVIRONMENT):
        overrides.setdefault("environment", environment)

    if max_depth := os.environ.get(ENV_MAX_DEPTH):
        try:
            overrides.setdefault("max_depth", int(max_depth))
        except ValueError as e:
            raise ConfigurationError(
                f"{ENV_MAX_DEPTH} must be an integer, got '{max_depth}'"
            ) from e

    return merge_cli_overrides(config, **overrides)
