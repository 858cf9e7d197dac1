"""Bundled source loaders."""

from code_variants.loaders.factory import SchemeSourceLoader, create_source_loader
from code_variants.loaders.filesystem import FileSystemSourceLoader
from code_variants.loaders.http import HttpSourceLoader
from code_variants.loaders.imports import discover_imports
from code_variants.loaders.protocol import LoadSourceResult, SourceLoader

__all__ = [
    "FileSystemSourceLoader",
    "HttpSourceLoader",
    "LoadSourceResult",
    "SchemeSourceLoader",
    "SourceLoader",
    "create_source_loader",
    "discover_imports",
]
