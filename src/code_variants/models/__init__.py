"""Data models for code variants."""

from code_variants.models.enums import (
    Environment,
    ImportKind,
    LoadStage,
    OutputMode,
    ValidationStatus,
)
from code_variants.models.externals import ExternalImport, Externals
from code_variants.models.results import (
    ExtraFilesResult,
    FallbackResult,
    LoadedFile,
    VariantLoadResult,
)
from code_variants.models.variant import (
    Code,
    ExtraFile,
    ExtraFileEntry,
    HastGzipSource,
    HastJsonSource,
    HastRoot,
    Transform,
    Transforms,
    Variant,
    VariantExtraFiles,
    VariantSource,
    is_hast_root,
    root_text_node,
)

__all__ = [
    "Code",
    "Environment",
    "ExternalImport",
    "Externals",
    "ExtraFile",
    "ExtraFileEntry",
    "ExtraFilesResult",
    "FallbackResult",
    "HastGzipSource",
    "HastJsonSource",
    "HastRoot",
    "ImportKind",
    "LoadStage",
    "LoadedFile",
    "OutputMode",
    "Transform",
    "Transforms",
    "ValidationStatus",
    "Variant",
    "VariantExtraFiles",
    "VariantLoadResult",
    "VariantSource",
    "is_hast_root",
    "root_text_node",
]
