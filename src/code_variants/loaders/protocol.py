"""Protocol definitions for source loaders."""

from typing import Optional, Protocol, runtime_checkable

from code_variants.models.externals import Externals
from code_variants.models.variant import CamelModel, VariantExtraFiles, VariantSource


class LoadSourceResult(CamelModel):
    """What a ``load_source`` collaborator returns for one identifier.

    ``extra_files`` keys are relative to the loaded file; values are absolute
    identifiers or inline content. ``extra_dependencies`` lists further
    identifiers the content was derived from.
    """

    source: Optional[VariantSource] = None
    extra_files: Optional[VariantExtraFiles] = None
    extra_dependencies: Optional[list[str]] = None
    externals: Optional[Externals] = None


@runtime_checkable
class SourceLoader(Protocol):
    """Protocol for source loaders.

    Any object with a ``load_source`` coroutine can back the pipeline's
    ``load_source`` collaborator.
    """

    async def load_source(self, url: str) -> LoadSourceResult:
        """Load the content behind ``url``.

        Args:
            url: Absolute identifier of the resource.

        Returns:
            LoadSourceResult with the content and anything discovered.
        """
        ...
