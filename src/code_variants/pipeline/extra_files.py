"""Recursive resolution of extra files."""

import asyncio
import logging
from typing import AbstractSet, Optional

from code_variants.config.models import LoadVariantOptions
from code_variants.errors import (
    CircularDependencyError,
    CodeVariantError,
    ConfigurationError,
    ExtraFileValidationError,
    MaxDepthExceededError,
)
from code_variants.models.externals import Externals
from code_variants.models.results import ExtraFilesResult, LoadedFile
from code_variants.models.variant import ExtraFile, ExtraFileEntry, VariantExtraFiles
from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.externals import merge_externals
from code_variants.pipeline.language import resolve_language
from code_variants.pipeline.paths import (
    convert_key_based_on_directory,
    is_relative_reference,
    resolve_reference,
)
from code_variants.pipeline.single_file import load_single_file

logger = logging.getLogger("code_variants.pipeline.extra_files")


def resolve_entry_url(value: str, base_url: Optional[str]) -> Optional[str]:
    """Resolve an identifier-valued entry.

    Relative references (``./`` or ``../``) are resolved against the declaring
    file; other identifiers are opaque and returned unchanged.

    Returns:
        The identifier to load, or ``None`` if it is relative and there is no base.
    """
    if not is_relative_reference(value):
        return value
    if not base_url:
        return None
    return resolve_reference(base_url, value)


def partition_resolvable(
    variant_name: str,
    extra_files: VariantExtraFiles,
    base_url: Optional[str],
    options: LoadVariantOptions,
) -> VariantExtraFiles:
    """Drop entries that need a base URL when none is available.

    Raises:
        ConfigurationError: If such an entry exists and skipping is disabled.
    """
    if base_url:
        return dict(extra_files)

    resolvable: VariantExtraFiles = {}
    for key, entry in extra_files.items():
        if isinstance(entry, str) and resolve_entry_url(entry, None) is None:
            if not options.skip_unresolvable_extra_files:
                raise ConfigurationError(
                    f"Extra file '{key}' has relative path '{entry}' but no URL is available "
                    "to resolve it against",
                    variant=variant_name,
                    file_name=key,
                )
            logger.warning(
                f"Skipping extra file '{key}' of variant '{variant_name}': "
                "no URL provided and the file requires loading from a relative path"
            )
            continue
        resolvable[key] = entry
    return resolvable


async def load_extra_files(
    variant_name: str,
    extra_files: VariantExtraFiles,
    base_url: Optional[str],
    entry_url: Optional[str],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
    max_depth: int,
    loaded_files: AbstractSet[str] = frozenset(),
    all_files_listed: bool = False,
    known_extra_files: AbstractSet[str] = frozenset(),
    globals_file_keys: AbstractSet[str] = frozenset(),
    source_file_key: str = "",
    inherit_metadata: bool = False,
) -> ExtraFilesResult:
    """Resolve a map of extra files, recursing into the files they declare.

    Siblings are loaded concurrently, then the extra files reported by each of
    them are resolved concurrently one level deeper. Keys in the result are
    relative to the entry file whatever the nesting level they came from.

    Args:
        variant_name: Name of the variant being resolved.
        extra_files: Entries keyed relative to the declaring file.
        base_url: Identifier of the declaring file.
        entry_url: Identifier of the entry (main) file.
        options: Collaborators and flags.
        cache: Load cache of the current resolution.
        max_depth: Remaining recursion budget.
        loaded_files: Identifiers on the current resolution path.
        all_files_listed: Whether the variant promised a complete extra-file list.
        known_extra_files: Entry-relative keys declared upfront.
        globals_file_keys: Keys of identifier entries injected from globals.
        source_file_key: Entry-relative key of the declaring file ("" for the entry).
        inherit_metadata: Mark every resolved file as metadata.

    Returns:
        ExtraFilesResult with the flattened files, dependencies and merged externals.

    Raises:
        MaxDepthExceededError: If the recursion budget is exhausted.
        CircularDependencyError: If an identifier is already on the current path.
    """
    if max_depth <= 0:
        raise MaxDepthExceededError(
            "Maximum recursion depth reached while loading extra files",
            variant=variant_name,
            url=base_url,
        )

    async def load_entry(
        key: str, entry: ExtraFileEntry
    ) -> tuple[LoadedFile, Optional[str], AbstractSet[str]]:
        entry_key = convert_key_based_on_directory(key, source_file_key)

        if isinstance(entry, str):
            file_url = resolve_entry_url(entry, base_url)
            if file_url is None:
                raise ConfigurationError(
                    f"Cannot resolve relative path '{entry}' without a base URL",
                    variant=variant_name,
                    file_name=key,
                )
            if file_url in loaded_files:
                raise CircularDependencyError(file_url, variant=variant_name, file_name=key)
            source, transforms, language = None, None, None
            next_loaded = loaded_files | {file_url}
        else:
            if entry.source is None:
                raise ExtraFileValidationError(
                    f"Extra file '{key}' has neither a source nor an identifier",
                    variant=variant_name,
                    file_name=key,
                    url=base_url,
                )
            file_url = None
            source, transforms, language = entry.source, entry.transforms, entry.language
            next_loaded = loaded_files

        loaded = await load_single_file(
            variant_name,
            key,
            source,
            file_url,
            options,
            cache,
            transforms=transforms,
            language=resolve_language(language, key, file_url),
            all_files_listed=all_files_listed,
            known_extra_files=known_extra_files,
            file_key=entry_key,
        )
        return loaded, file_url, next_loaded

    keys = list(extra_files)
    try:
        results = await asyncio.gather(*(load_entry(key, extra_files[key]) for key in keys))
    except CodeVariantError as e:
        raise e.with_context(variant=variant_name, url=base_url)

    processed: VariantExtraFiles = {}
    dependencies: list[str] = []
    externals_list: list[Optional[Externals]] = []
    nested_calls = []

    for key, (loaded, file_url, next_loaded) in zip(keys, results):
        entry = extra_files[key]
        entry_key = convert_key_based_on_directory(key, source_file_key)

        if isinstance(entry, ExtraFile):
            metadata = entry.metadata
            comments = entry.comments
        else:
            metadata = True if key in globals_file_keys else None
            comments = None
        if inherit_metadata:
            metadata = True

        processed[entry_key] = ExtraFile(
            source=loaded.source,
            transforms=loaded.transforms,
            metadata=metadata,
            comments=comments,
        )

        if file_url:
            dependencies.append(file_url)
        if loaded.extra_dependencies:
            dependencies.extend(loaded.extra_dependencies)
        externals_list.append(loaded.externals)

        if loaded.extra_files:
            nested_calls.append(
                load_extra_files(
                    variant_name,
                    loaded.extra_files,
                    file_url or base_url,
                    entry_url,
                    options,
                    cache,
                    max_depth - 1,
                    loaded_files=next_loaded,
                    all_files_listed=all_files_listed,
                    known_extra_files=known_extra_files,
                    source_file_key=entry_key,
                    inherit_metadata=bool(metadata),
                )
            )

    if nested_calls:
        for nested in await asyncio.gather(*nested_calls):
            processed.update(nested.extra_files)
            dependencies.extend(nested.dependencies)
            externals_list.append(nested.externals)

    return ExtraFilesResult(
        extra_files=processed,
        dependencies=dependencies,
        externals=merge_externals(externals_list),
    )
