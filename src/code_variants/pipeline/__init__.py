"""Resolution pipeline for code variants."""

from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.enhance import enhance_code, enhance_variant
from code_variants.pipeline.externals import externals_to_packaged, merge_externals
from code_variants.pipeline.extra_files import load_extra_files
from code_variants.pipeline.fallback import find_file_source, load_fallback_code
from code_variants.pipeline.globals import generate_conflict_free_filename, resolve_globals
from code_variants.pipeline.serialization import decode_source, serialize_source
from code_variants.pipeline.single_file import load_single_file
from code_variants.pipeline.transforms import (
    apply_code_transform,
    apply_transform,
    get_available_transforms,
)
from code_variants.pipeline.variant import load_code_variant, resolve_variant_meta

__all__ = [
    "LoadSourceCache",
    "apply_code_transform",
    "apply_transform",
    "decode_source",
    "enhance_code",
    "enhance_variant",
    "externals_to_packaged",
    "find_file_source",
    "generate_conflict_free_filename",
    "get_available_transforms",
    "load_code_variant",
    "load_extra_files",
    "load_fallback_code",
    "load_single_file",
    "merge_externals",
    "resolve_globals",
    "resolve_variant_meta",
    "serialize_source",
]
