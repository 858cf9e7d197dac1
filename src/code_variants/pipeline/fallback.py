"""Fallback orchestration for rendering one file of a (possibly partial) code map.

Decides whether the data already at hand is enough to show the requested file,
or whether the requested variant (and optionally every other variant) has to be
resolved first.
"""

import asyncio
import logging
from typing import Any, Optional

from code_variants.config.models import FallbackOptions
from code_variants.errors import (
    CodeVariantError,
    ConfigurationError,
    FileNotFoundInVariantError,
    LoadVariantMetaError,
    ParseSourceError,
)
from code_variants.models.results import FallbackResult
from code_variants.models.variant import (
    Code,
    ExtraFile,
    Variant,
    VariantSource,
    root_text_node,
)
from code_variants.pipeline.globals import select_globals_source
from code_variants.pipeline.language import resolve_language
from code_variants.pipeline.variant import dedupe, load_code_variant, resolve_variant_meta
from code_variants.utils.collaborators import call_collaborator

logger = logging.getLogger("code_variants.pipeline.fallback")


def find_file_source(
    variant: Variant,
    requested: Optional[str] = None,
) -> Optional[tuple[Optional[str], VariantSource]]:
    """Find content for a file that is already present in a variant.

    Args:
        variant: Variant to look in.
        requested: File name; defaults to the main file.

    Returns:
        Tuple of (file name, source), or ``None`` if the content is not present.
    """
    file_name = requested or variant.file_name

    if not file_name:
        return (None, variant.source) if variant.source is not None else None

    if file_name == variant.file_name and variant.source is not None:
        return file_name, variant.source

    entry = (variant.extra_files or {}).get(file_name)
    if isinstance(entry, ExtraFile) and entry.source is not None:
        return file_name, entry.source

    return None


def normalize_code(code: dict[str, Any]) -> Code:
    """Validate plain-dict variants of a code map into Variant models."""
    return {
        name: value if isinstance(value, (Variant, str)) else Variant.model_validate(value)
        for name, value in code.items()
    }


async def _load_code_meta(url: str, options: FallbackOptions) -> Code:
    if options.load_code_meta is None:
        raise ConfigurationError(
            "A load_code_meta function is required when the initial variant is not provided",
            url=url,
        )
    try:
        code = await call_collaborator(options.load_code_meta, url)
    except CodeVariantError as e:
        raise e.with_context(url=url)
    except Exception as e:
        raise LoadVariantMetaError(f"Failed to load code metadata: {e}", url=url) from e

    return normalize_code(code)


async def _highlight(
    variant_name: str,
    file_name: Optional[str],
    source: VariantSource,
    language: Optional[str],
    options: FallbackOptions,
) -> VariantSource:
    """Parse a raw source on demand when highlighting is requested."""
    if not isinstance(source, str):
        return source
    if not file_name:
        return root_text_node(source)
    if options.parse_source is None:
        return source

    try:
        return await call_collaborator(
            options.parse_source, source, file_name, resolve_language(language, file_name)
        )
    except Exception as e:
        raise ParseSourceError(
            f"Failed to parse source for highlighting: {e}",
            variant=variant_name,
            file_name=file_name,
        ) from e


async def _resolve_globals_code(options: FallbackOptions) -> Optional[list[Any]]:
    """Turn identifier globals into code maps when ``load_code_meta`` is available."""
    if not options.globals_code:
        return None

    async def resolve(item: Any) -> Any:
        if isinstance(item, str) and options.load_code_meta is not None:
            return await _load_code_meta(item, options)
        return item

    return list(await asyncio.gather(*(resolve(item) for item in options.globals_code)))


def _globals_for(globals_code: Optional[list[Any]], variant_name: str) -> Optional[list[Any]]:
    if not globals_code:
        return None
    selected = [select_globals_source(item, variant_name) for item in globals_code]
    return [item for item in selected if item is not None] or None


async def load_fallback_code(
    url: str,
    initial_variant: str,
    loaded: Optional[Code] = None,
    options: Optional[FallbackOptions] = None,
) -> FallbackResult:
    """Make sure the requested file of a variant can be rendered.

    When the variant lists all its files, nothing broader is requested and the
    requested content is already present, it is returned directly (parsed on
    demand for highlighting). Otherwise the variant is resolved, and with
    ``fallback_uses_all_variants`` every other variant as well, in parallel.

    Args:
        url: Identifier of the code sample (passed to ``load_code_meta``).
        initial_variant: Name of the variant to show.
        loaded: Code map available so far.
        options: Collaborators, flags and what the caller needs.

    Returns:
        FallbackResult with the updated code map and the requested file.

    Raises:
        FileNotFoundInVariantError: If the requested file is not part of the resolved variant.
        CodeVariantError: Any other failure of the requested variant.
    """
    options = options or FallbackOptions()
    code: Code = normalize_code(loaded or {})

    initial = code.get(initial_variant)
    if initial is None:
        code = await _load_code_meta(url, options)
        initial = code.get(initial_variant)
        if initial is None:
            raise ConfigurationError(
                f"Initial variant '{initial_variant}' not found in loaded code",
                variant=initial_variant,
                url=url,
            )

    if isinstance(initial, str):
        initial = await resolve_variant_meta(initial_variant, initial, options)
        code[initial_variant] = initial

    early = _try_early_return(initial, options)
    if early is not None:
        file_name, source = early
        if options.should_highlight:
            source = await _highlight(initial_variant, file_name, source, initial.language, options)
        if file_name == initial.file_name:
            code[initial_variant] = initial.model_copy(update={"source": source})
        logger.debug(f"Variant '{initial_variant}' already complete, skipping resolution")
        return FallbackResult(
            code=code,
            initial_filename=file_name,
            initial_source=source,
            all_file_names=initial.file_names,
        )

    globals_code = await _resolve_globals_code(options)

    def variant_options(variant_name: str) -> FallbackOptions:
        return options.model_copy(
            update={
                "source_transformers": None,
                "disable_transforms": True,
                "disable_parsing": not options.should_highlight,
                "globals_code": _globals_for(globals_code, variant_name),
            }
        )

    resolved = await load_code_variant(
        initial.url or url, initial_variant, initial, variant_options(initial_variant)
    )
    code[initial_variant] = resolved.code
    all_file_names = list(resolved.code.file_names)

    if options.fallback_uses_all_variants:
        names = options.variants or list(code)
        others = [name for name in names if name != initial_variant]

        if options.load_code_meta is not None and any(name not in code for name in others):
            for key, value in (await _load_code_meta(url, options)).items():
                code.setdefault(key, value)

        async def load_other(name: str) -> Optional[Variant]:
            variant = code.get(name)
            if variant is None:
                logger.warning(f"Variant '{name}' not found, skipping it while listing files")
                return None
            try:
                result = await load_code_variant(
                    variant.url if isinstance(variant, Variant) else None,
                    name,
                    variant,
                    variant_options(name),
                )
            except CodeVariantError as e:
                logger.warning(f"Failed to load variant '{name}' for file listing: {e}")
                return None
            return result.code

        for name, variant in zip(others, await asyncio.gather(*(load_other(n) for n in others))):
            if variant is not None:
                code[name] = variant
                all_file_names.extend(variant.file_names)

    final = code[initial_variant]
    found = find_file_source(final, options.initial_filename)
    if found is None:
        raise FileNotFoundInVariantError(
            f"File '{options.initial_filename or final.file_name}' not found in variant",
            variant=initial_variant,
            file_name=options.initial_filename or final.file_name,
            url=final.url,
        )
    file_name, source = found

    return FallbackResult(
        code=code,
        initial_filename=file_name,
        initial_source=source,
        all_file_names=dedupe(all_file_names),
        initial_extra_files=(final.extra_files or {}) if options.fallback_uses_extra_files else None,
        processed_globals_code=globals_code,
    )


def _try_early_return(
    variant: Variant,
    options: FallbackOptions,
) -> Optional[tuple[Optional[str], VariantSource]]:
    """Return the requested content if the variant needs no further resolution."""
    if not variant.all_files_listed:
        return None
    if options.fallback_uses_extra_files or options.fallback_uses_all_variants:
        return None
    return find_file_source(variant, options.initial_filename)
