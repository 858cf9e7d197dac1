"""Injection of shared globals files into a variant."""

import asyncio
import logging
import posixpath
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from code_variants.config.defaults import GLOBALS_FILENAME_PREFIX
from code_variants.config.models import LoadVariantOptions
from code_variants.errors import CodeVariantError
from code_variants.models.externals import Externals
from code_variants.models.results import VariantLoadResult
from code_variants.models.variant import ExtraFile, Variant, VariantExtraFiles
from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.externals import merge_externals
from code_variants.pipeline.paths import split_extension

logger = logging.getLogger("code_variants.pipeline.globals")

LoadVariant = Callable[..., Awaitable[VariantLoadResult]]

# Keys that mark a mapping as a single variant rather than a code map
VARIANT_KEYS = frozenset(Variant.model_fields) | frozenset(
    to_camel(name) for name in Variant.model_fields
)


class GlobalsResult(BaseModel):
    """Extra files contributed by globals sources."""

    extra_files: VariantExtraFiles = Field(default_factory=dict)
    file_keys: set[str] = Field(default_factory=set)
    dependencies: list[str] = Field(default_factory=list)
    externals: Externals = Field(default_factory=dict)


def generate_conflict_free_filename(file_name: str, existing: Iterable[str]) -> str:
    """Pick a name for an injected file that is not taken yet.

    Tries the name itself, then the ``global_`` prefixed name, then
    ``global_<stem>_<n><ext>`` with an increasing ``n``. Only the last path
    segment is renamed.

    Args:
        file_name: Incoming file name (may contain directories).
        existing: Names already in use.

    Returns:
        A free name.
    """
    taken = set(existing)
    if file_name not in taken:
        return file_name

    directory, base_name = posixpath.split(file_name)
    prefixed = posixpath.join(directory, f"{GLOBALS_FILENAME_PREFIX}{base_name}")
    if prefixed not in taken:
        return prefixed

    stem, extension = split_extension(base_name)
    counter = 1
    while True:
        candidate = posixpath.join(
            directory, f"{GLOBALS_FILENAME_PREFIX}{stem}_{counter}{extension}"
        )
        if candidate not in taken:
            return candidate
        counter += 1


def select_globals_source(item: Any, variant_name: str) -> Optional[Any]:
    """Pick the globals source relevant for a variant.

    Variants and identifiers apply to every variant. A code map (variant name
    to variant) contributes only its entry for ``variant_name``.
    """
    if isinstance(item, (Variant, str)):
        return item
    if isinstance(item, Mapping):
        if VARIANT_KEYS.intersection(item):
            return Variant.model_validate(item)
        return item.get(variant_name)
    return item


async def resolve_globals(
    variant_name: str,
    globals_code: list[Any],
    existing_names: Iterable[str],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
    load_variant: LoadVariant,
) -> GlobalsResult:
    """Resolve every globals source and collect its extra files.

    Each source is resolved by ``load_variant`` with globals injection turned off.
    Only the extra files of a source are injected, never its main file. Injected
    files get conflict-free names and are marked as metadata.

    Args:
        variant_name: Name of the target variant.
        globals_code: Globals sources.
        existing_names: Names already used by the target variant.
        options: Options of the target resolution.
        cache: Load cache of the target resolution.
        load_variant: The variant orchestrator.

    Returns:
        GlobalsResult with the renamed files, their keys and what they depend on.
    """
    sources = [
        source
        for source in (select_globals_source(item, variant_name) for item in globals_code)
        if source is not None
    ]
    if not sources:
        return GlobalsResult()

    # Injected files are enhanced once, as part of the host variant
    nested_options = options.model_copy(update={"globals_code": None, "source_enhancers": None})

    async def load(source: Any) -> VariantLoadResult:
        url = source.url if isinstance(source, Variant) else None
        try:
            return await load_variant(url, variant_name, source, nested_options, cache=cache)
        except CodeVariantError as e:
            raise e.with_context(variant=variant_name)

    results = await asyncio.gather(*(load(source) for source in sources))

    taken = set(existing_names)
    result = GlobalsResult()
    externals_list = []

    for loaded in results:
        for key, value in (loaded.code.extra_files or {}).items():
            name = generate_conflict_free_filename(key, taken)
            if name != key:
                logger.debug(f"Renamed globals file '{key}' to '{name}' for variant '{variant_name}'")

            if isinstance(value, ExtraFile):
                result.extra_files[name] = value.model_copy(update={"metadata": True})
            else:
                result.extra_files[name] = value
            result.file_keys.add(name)
            taken.add(name)

        result.dependencies.extend(loaded.dependencies)
        externals_list.append(loaded.externals)

    result.externals = merge_externals(externals_list)
    return result
