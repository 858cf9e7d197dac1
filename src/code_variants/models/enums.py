"""Enumerations for the code variants pipeline."""

from enum import Enum


class OutputMode(str, Enum):
    """How a parsed tree is stored in the packaged variant."""

    HAST = "hast"
    HAST_JSON = "hastJson"
    HAST_GZIP = "hastGzip"


class Environment(str, Enum):
    """Runtime environment.

    Decides whether consistency violations fail hard or degrade to warnings.
    """

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @property
    def is_production(self) -> bool:
        """Whether this is the production environment."""
        return self == Environment.PRODUCTION


class ImportKind(str, Enum):
    """Kind of an imported symbol."""

    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"


class LoadStage(str, Enum):
    """Stages of a single variant resolution."""

    INIT = "init"
    MAIN_FILE_LOADED = "main_file_loaded"
    GLOBALS_RESOLVED = "globals_resolved"
    EXTRA_FILES_RESOLVED = "extra_files_resolved"
    DONE = "done"
    FAILED = "failed"


class ValidationStatus(str, Enum):
    """Outcome of a validation check."""

    OK = "ok"
    WARN = "warn"
    FAIL = "fail"
