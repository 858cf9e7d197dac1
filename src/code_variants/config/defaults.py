"""Default configuration values for code variants."""

from pathlib import Path

# Default configuration file name
DEFAULT_CONFIG_FILENAME = "code-variants.config.json"

# Search paths for configuration file (in order of priority)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / DEFAULT_CONFIG_FILENAME,
    Path.home() / ".config" / "code-variants" / "config.json",
]

# Maximum nesting of extra files below an entry file
DEFAULT_MAX_DEPTH = 10

# Name used for a variant when none is given
DEFAULT_VARIANT_NAME = "Default"

# Prefix tried first when an injected globals file name is taken
GLOBALS_FILENAME_PREFIX = "global_"

# Environment variables
ENV_ENVIRONMENT = "CODE_VARIANTS_ENV"
ENV_MAX_DEPTH = "CODE_VARIANTS_MAX_DEPTH"
