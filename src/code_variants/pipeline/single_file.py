"""Loading, transforming and parsing of a single file."""

import logging
from typing import AbstractSet, Any, Optional

from code_variants.config.models import LoadVariantOptions
from code_variants.errors import (
    CodeVariantError,
    ConfigurationError,
    LoadSourceError,
    ParseSourceError,
    TransformSourceError,
)
from code_variants.loaders.protocol import LoadSourceResult
from code_variants.models.results import LoadedFile
from code_variants.models.variant import Transforms, VariantSource
from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.paths import convert_key_based_on_directory, normalize_path_key
from code_variants.pipeline.serialization import serialize_source
from code_variants.pipeline.transforms import diff_parsed_transforms, transform_source
from code_variants.pipeline.validation import (
    check_all_files_listed,
    raise_or_warn,
    validate_extra_dependencies,
    validate_loaded_extra_files,
)
from code_variants.utils.collaborators import call_collaborator
from code_variants.utils.logging import StageTimer

logger = logging.getLogger("code_variants.pipeline.single_file")


async def _fetch(
    variant_name: str,
    file_name: str,
    url: Optional[str],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
) -> LoadSourceResult:
    """Load a file through the cache and normalize the collaborator's result."""
    if options.load_source is None:
        raise ConfigurationError(
            "A load_source function is required when a file has no inline source",
            variant=variant_name,
            file_name=file_name,
            url=url,
        )
    if not url:
        raise ConfigurationError(
            "A URL is required to load a file without inline source",
            variant=variant_name,
            file_name=file_name,
        )

    async def load(target: str) -> LoadSourceResult:
        result = await call_collaborator(options.load_source, target)
        if isinstance(result, LoadSourceResult):
            return result
        return LoadSourceResult.model_validate(result)

    try:
        loaded = await cache.get_or_load(url, load)
    except CodeVariantError as e:
        raise e.with_context(variant=variant_name, file_name=file_name, url=url)
    except Exception as e:
        raise LoadSourceError(
            f"Failed to load source code: {e}",
            variant=variant_name,
            file_name=file_name,
            url=url,
        ) from e

    if loaded.source is None:
        raise LoadSourceError(
            "load_source returned no source",
            variant=variant_name,
            file_name=file_name,
            url=url,
        )

    return loaded


async def load_single_file(
    variant_name: str,
    file_name: str,
    source: Optional[VariantSource],
    url: Optional[str],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
    transforms: Optional[Transforms] = None,
    language: Optional[str] = None,
    all_files_listed: bool = False,
    known_extra_files: AbstractSet[str] = frozenset(),
    file_key: str = "",
) -> LoadedFile:
    """Load one file and bring it into its final form.

    Inline sources are used as is; otherwise the file is loaded through the
    cache. Raw text is run through the matching transformers, parsed, and its
    transforms recomputed as tree deltas against the parsed baseline.

    Args:
        variant_name: Name of the variant being resolved.
        file_name: Name (or key) of the file.
        source: Inline source, if any.
        url: Identifier used to load the file when there is no inline source.
        options: Collaborators and flags.
        cache: Load cache of the current resolution.
        transforms: Transforms already computed for this file.
        language: Language passed to the parser.
        all_files_listed: Whether the variant promised a complete extra-file list.
        known_extra_files: Extra-file keys declared upfront, relative to the entry file.
        file_key: Key of this file relative to the entry file ("" for the entry file).

    Returns:
        LoadedFile with the final source, transforms and anything the loader discovered.

    Raises:
        ConfigurationError: If a required collaborator is missing.
        ExtraFileValidationError: If the loader reported malformed extra files.
        UnexpectedExtraFilesError: If undeclared files appeared in development.
        LoadSourceError: If loading failed.
        TransformSourceError: If a transformer failed.
        ParseSourceError: If parsing failed.
    """
    timer = StageTimer(logger, f"{variant_name}/{url or file_name}")
    final_source = source
    loaded: Optional[LoadSourceResult] = None

    if final_source is None:
        loaded = await _fetch(variant_name, file_name, url, options, cache)
        final_source = loaded.source
        timer.mark("loaded")

        if loaded.extra_files:
            validate_loaded_extra_files(
                loaded.extra_files, variant=variant_name, file_name=file_name, url=url
            )
        if loaded.extra_dependencies:
            validate_extra_dependencies(
                loaded.extra_dependencies, url, variant=variant_name, file_name=file_name
            )

        if all_files_listed and loaded.extra_files:
            discovered = [
                convert_key_based_on_directory(key, file_key) for key in loaded.extra_files
            ]
            result = check_all_files_listed(discovered, known_extra_files, options.environment)
            raise_or_warn(result, variant=variant_name, file_name=file_name, url=url)

    final_transforms = transforms
    if (
        options.source_transformers
        and final_transforms is None
        and not options.disable_transforms
        and isinstance(final_source, str)
    ):
        try:
            final_transforms = await transform_source(
                final_source, normalize_path_key(file_name), options.source_transformers
            )
        except CodeVariantError:
            raise
        except Exception as e:
            raise TransformSourceError(
                f"Failed to transform source code: {e}",
                variant=variant_name,
                file_name=file_name,
                url=url,
            ) from e
        timer.mark("transformed")

    if isinstance(final_source, str) and not options.disable_parsing:
        final_source, final_transforms = await _parse(
            variant_name, file_name, url, final_source, final_transforms, language, options
        )
        timer.mark("parsed")

    return LoadedFile(
        source=final_source,
        transforms=final_transforms,
        extra_files=loaded.extra_files if loaded else None,
        extra_dependencies=loaded.extra_dependencies if loaded else None,
        externals=loaded.externals if loaded else None,
    )


async def _parse(
    variant_name: str,
    file_name: str,
    url: Optional[str],
    text: str,
    transforms: Optional[Transforms],
    language: Optional[str],
    options: LoadVariantOptions,
) -> tuple[Any, Optional[Transforms]]:
    """Parse raw text, re-diff transforms as tree deltas and serialize the tree."""
    if options.parse_source is None:
        raise ConfigurationError(
            "A parse_source function is required when parsing is enabled",
            variant=variant_name,
            file_name=file_name,
            url=url,
        )

    try:
        parsed = await call_collaborator(options.parse_source, text, file_name, language)
        if transforms and not options.disable_transforms:
            transforms = await diff_parsed_transforms(
                text,
                parsed,
                normalize_path_key(file_name),
                transforms,
                options.parse_source,
                language,
            )
    except CodeVariantError:
        raise
    except Exception as e:
        raise ParseSourceError(
            f"Failed to parse source code: {e}",
            variant=variant_name,
            file_name=file_name,
            url=url,
        ) from e

    return serialize_source(parsed, options.output, options.environment), transforms
