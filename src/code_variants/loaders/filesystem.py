"""Filesystem source loader."""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

import aiofiles
import aiofiles.os

from code_variants.loaders.imports import CSS_EXTENSIONS, SCRIPT_EXTENSIONS, discover_imports
from code_variants.loaders.protocol import LoadSourceResult

logger = logging.getLogger("code_variants.loaders.filesystem")

# Tried in order when an import omits the extension
RESOLVE_EXTENSIONS = [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json", ".css"]


class FileSystemSourceLoader:
    """Loads sources from disk.

    Identifiers are ``file://`` URLs or paths. With import discovery enabled,
    relative imports of script and CSS files are reported as extra files and
    bare module imports as externals.
    """

    def __init__(
        self,
        root_path: Optional[Path] = None,
        encoding: str = "utf-8",
        discover_imports: bool = True,
    ):
        """Initialize the loader.

        Args:
            root_path: Directory that relative paths are resolved against.
            encoding: Text encoding of source files.
            discover_imports: Report relative imports and externals.
        """
        self._root = (root_path or Path.cwd()).resolve()
        self._encoding = encoding
        self._discover_imports = discover_imports

    def to_path(self, url: str) -> Path:
        """Convert an identifier to a filesystem path."""
        if url.startswith("file://"):
            return Path(unquote(urlsplit(url).path))
        path = Path(url)
        return path if path.is_absolute() else self._root / path

    async def load_source(self, url: str) -> LoadSourceResult:
        """Read the file behind ``url``.

        Args:
            url: ``file://`` URL or path.

        Returns:
            LoadSourceResult with the file content and discovered imports.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        path = self.to_path(url)
        logger.debug(f"Reading {path}")

        async with aiofiles.open(path, mode="r", encoding=self._encoding) as f:
            source = await f.read()

        if not self._discover_imports or not path.name.endswith(SCRIPT_EXTENSIONS + CSS_EXTENSIONS):
            return LoadSourceResult(source=source)

        discovered = discover_imports(source, path.name)
        extra_files: dict[str, str] = {}

        for specifier in discovered.relative:
            resolved = await self._resolve_import(path.parent, specifier)
            if resolved is None:
                logger.warning(f"Could not resolve import '{specifier}' in {path}")
                continue
            key = Path(os.path.relpath(resolved, path.parent)).as_posix()
            extra_files[key] = resolved.as_uri()

        return LoadSourceResult(
            source=source,
            extra_files=extra_files or None,
            externals=discovered.externals or None,
        )

    async def _resolve_import(self, directory: Path, specifier: str) -> Optional[Path]:
        """Find the file an import specifier refers to."""
        base = Path(os.path.normpath(directory / specifier))

        candidates = [base]
        candidates.extend(base.with_name(base.name + ext) for ext in RESOLVE_EXTENSIONS)
        candidates.extend(base / f"index{ext}" for ext in RESOLVE_EXTENSIONS)

        for candidate in candidates:
            if await aiofiles.os.path.isfile(candidate):
                return candidate

        return None
