"""Factory for creating source loaders."""

from typing import Optional

from code_variants.config.models import LoaderConfig
from code_variants.loaders.filesystem import FileSystemSourceLoader
from code_variants.loaders.http import HttpSourceLoader
from code_variants.loaders.protocol import LoadSourceResult


class SchemeSourceLoader:
    """Dispatches to the HTTP or filesystem loader based on the URL scheme."""

    def __init__(self, filesystem: FileSystemSourceLoader, http: HttpSourceLoader):
        """Initialize the dispatcher.

        Args:
            filesystem: Loader for ``file://`` URLs and paths.
            http: Loader for ``http://`` and ``https://`` URLs.
        """
        self.filesystem = filesystem
        self.http = http

    async def load_source(self, url: str) -> LoadSourceResult:
        """Load ``url`` with the loader matching its scheme."""
        if url.startswith(("http://", "https://")):
            return await self.http.load_source(url)
        return await self.filesystem.load_source(url)

    async def close(self) -> None:
        """Release network resources."""
        await self.http.close()


def create_source_loader(config: Optional[LoaderConfig] = None) -> SchemeSourceLoader:
    """Create a source loader based on configuration.

    Args:
        config: LoaderConfig object with loader settings.

    Returns:
        SchemeSourceLoader handling files and HTTP(S) URLs.
    """
    if config is None:
        config = LoaderConfig()

    return SchemeSourceLoader(
        filesystem=FileSystemSourceLoader(
            root_path=config.root_path,
            encoding=config.encoding,
            discover_imports=config.discover_imports,
        ),
        http=HttpSourceLoader(
            timeout=config.timeout_seconds,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay_seconds,
        ),
    )
