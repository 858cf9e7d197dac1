"""Exceptions raised while resolving code variants."""

from typing import Optional


class CodeVariantError(Exception):
    """Base error carrying the variant, file and URL being processed."""

    def __init__(
        self,
        message: str,
        variant: Optional[str] = None,
        file_name: Optional[str] = None,
        url: Optional[str] = None,
    ):
        """Initialize the error.

        Args:
            message: Human readable description.
            variant: Name of the variant being resolved.
            file_name: File being processed.
            url: Identifier of the file being processed.
        """
        self.message = message
        self.variant = variant
        self.file_name = file_name
        self.url = url
        super().__init__(self._format())

    @property
    def context(self) -> str:
        """Render the location context, e.g. ``(variant: js, file: a.js)``."""
        parts = []
        if self.variant is not None:
            parts.append(f"variant: {self.variant}")
        if self.file_name is not None:
            parts.append(f"file: {self.file_name}")
        if self.url is not None:
            parts.append(f"url: {self.url}")
        return f"({', '.join(parts)})" if parts else ""

    def _format(self) -> str:
        context = self.context
        return f"{self.message} {context}" if context else self.message

    def with_context(
        self,
        variant: Optional[str] = None,
        file_name: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "CodeVariantError":
        """Fill in any context fields that are still missing."""
        self.variant = self.variant if self.variant is not None else variant
        self.file_name = self.file_name if self.file_name is not None else file_name
        self.url = self.url if self.url is not None else url
        self.args = (self._format(),)
        return self


class ConfigurationError(CodeVariantError):
    """A collaborator or setting required for the operation is missing."""


class ExtraFileValidationError(CodeVariantError, ValueError):
    """Malformed extra-file keys, values or extra dependencies."""


class GraphError(CodeVariantError):
    """The extra-file graph cannot be traversed."""


class CircularDependencyError(GraphError):
    """An identifier is already being resolved on the current path."""

    def __init__(self, url: str, variant: Optional[str] = None, file_name: Optional[str] = None):
        super().__init__(
            f"Circular dependency detected: {url}",
            variant=variant,
            file_name=file_name,
        )
        self.cycle_url = url


class MaxDepthExceededError(GraphError):
    """The recursion depth budget ran out."""


class ConsistencyError(CodeVariantError):
    """Loaded data contradicts what the variant declared."""


class UnexpectedExtraFilesError(ConsistencyError):
    """Extra files were discovered although ``allFilesListed`` was promised."""


class CollaboratorError(CodeVariantError):
    """A supplied collaborator function failed."""


class LoadSourceError(CollaboratorError):
    """The ``load_source`` collaborator failed."""


class ParseSourceError(CollaboratorError):
    """The ``parse_source`` collaborator failed."""


class TransformSourceError(CollaboratorError):
    """A source transformer failed."""


class LoadVariantMetaError(CollaboratorError):
    """The ``load_variant_meta`` or ``load_code_meta`` collaborator failed."""


class EnhanceSourceError(CollaboratorError):
    """A source enhancer failed."""


class FileNotFoundInVariantError(CodeVariantError, LookupError):
    """A requested file is neither the main file nor an extra file."""


class DeltaError(CodeVariantError, ValueError):
    """A delta does not fit the baseline it is applied to."""
