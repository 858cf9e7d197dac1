"""Result models returned by the loading pipeline."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from code_variants.models.externals import Externals
from code_variants.models.variant import (
    Code,
    Transforms,
    Variant,
    VariantExtraFiles,
    VariantSource,
)


class LoadedFile(BaseModel):
    """Outcome of loading one file (main or extra)."""

    source: VariantSource
    transforms: Optional[Transforms] = None
    extra_files: Optional[VariantExtraFiles] = None
    extra_dependencies: Optional[list[str]] = None
    externals: Optional[Externals] = None


class ExtraFilesResult(BaseModel):
    """Flattened outcome of resolving an extra-file map recursively."""

    extra_files: VariantExtraFiles = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    externals: Externals = Field(default_factory=dict)


class VariantLoadResult(BaseModel):
    """Outcome of resolving a single variant."""

    code: Variant
    dependencies: list[str] = Field(default_factory=list)
    externals: Externals = Field(default_factory=dict)


class FallbackResult(BaseModel):
    """Outcome of the fallback orchestration for one requested variant."""

    code: Code
    initial_filename: Optional[str] = None
    initial_source: Optional[VariantSource] = None
    all_file_names: list[str] = Field(default_factory=list)
    initial_extra_files: Optional[VariantExtraFiles] = None
    processed_globals_code: Optional[list[Any]] = None
