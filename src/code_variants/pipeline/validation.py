"""Validation of loader output and extra-file declarations."""

import logging
from typing import Iterable, Mapping, Optional

from pydantic import BaseModel

from code_variants.errors import ExtraFileValidationError, UnexpectedExtraFilesError
from code_variants.models.enums import Environment, ValidationStatus
from code_variants.pipeline.paths import is_absolute_path, is_relative_reference

logger = logging.getLogger("code_variants.pipeline.validation")


class ValidationResult(BaseModel):
    """Structured outcome of a check whose severity depends on the environment."""

    status: ValidationStatus = ValidationStatus.OK
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def warn(cls, message: str) -> "ValidationResult":
        return cls(status=ValidationStatus.WARN, message=message)

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(status=ValidationStatus.FAIL, message=message)

    @property
    def is_ok(self) -> bool:
        return self.status == ValidationStatus.OK


def validate_extra_file_keys(
    extra_files: Mapping[str, object],
    variant: Optional[str] = None,
    file_name: Optional[str] = None,
    url: Optional[str] = None,
) -> None:
    """Ensure no extra-file key is absolute.

    Raises:
        ExtraFileValidationError: On the first absolute key.
    """
    for key in extra_files:
        if is_absolute_path(key):
            raise ExtraFileValidationError(
                f"Invalid extra file key '{key}': keys must be relative to the declaring file",
                variant=variant,
                file_name=file_name,
                url=url,
            )


def validate_loaded_extra_files(
    extra_files: Mapping[str, object],
    variant: Optional[str] = None,
    file_name: Optional[str] = None,
    url: Optional[str] = None,
) -> None:
    """Validate extra files reported by a loader.

    Keys must be relative and identifier values must not be relative paths.

    Raises:
        ExtraFileValidationError: On the first violation.
    """
    validate_extra_file_keys(extra_files, variant=variant, file_name=file_name, url=url)

    for key, value in extra_files.items():
        if isinstance(value, str) and is_relative_reference(value):
            raise ExtraFileValidationError(
                f"Invalid extra file value for '{key}': '{value}' is a relative path, "
                "loaders must return absolute identifiers",
                variant=variant,
                file_name=file_name,
                url=url,
            )


def validate_extra_dependencies(
    dependencies: Iterable[str],
    current_url: Optional[str],
    variant: Optional[str] = None,
    file_name: Optional[str] = None,
) -> None:
    """Ensure extra dependencies are absolute and differ from the loading file.

    Raises:
        ExtraFileValidationError: On the first violation.
    """
    for dependency in dependencies:
        if is_relative_reference(dependency):
            raise ExtraFileValidationError(
                f"Invalid extra dependency '{dependency}': must be an absolute identifier",
                variant=variant,
                file_name=file_name,
                url=current_url,
            )
        if current_url is not None and dependency == current_url:
            raise ExtraFileValidationError(
                f"Invalid extra dependency '{dependency}': a file cannot depend on itself",
                variant=variant,
                file_name=file_name,
                url=current_url,
            )


def check_all_files_listed(
    discovered_keys: Iterable[str],
    known_keys: Iterable[str],
    environment: Environment,
) -> ValidationResult:
    """Check that a load revealed no extra files beyond those declared upfront."""
    known = set(known_keys)
    unexpected = [key for key in discovered_keys if key not in known]
    if not unexpected:
        return ValidationResult.ok()

    message = (
        "allFilesListed is set but loading discovered undeclared extra files: "
        + ", ".join(sorted(unexpected))
        + ". Add them to extraFiles or remove allFilesListed."
    )
    if environment.is_production:
        return ValidationResult.warn(message)
    return ValidationResult.fail(message)


def raise_or_warn(
    result: ValidationResult,
    variant: Optional[str] = None,
    file_name: Optional[str] = None,
    url: Optional[str] = None,
) -> None:
    """Surface a validation result: fail raises, warn logs.

    Raises:
        UnexpectedExtraFilesError: If the result is a failure.
    """
    if result.status == ValidationStatus.FAIL:
        raise UnexpectedExtraFilesError(
            result.message or "Validation failed",
            variant=variant,
            file_name=file_name,
            url=url,
        )
    if result.status == ValidationStatus.WARN:
        logger.warning(f"{result.message} (variant: {variant}, file: {file_name})")
