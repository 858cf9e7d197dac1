"""Resolution of a single named variant.

``load_code_variant`` walks one variant through these stages::

    init -> main_file_loaded -> globals_resolved -> extra_files_resolved -> done

and ends in ``failed`` if any stage raises. Every stage works on copies; the
variant passed in is never modified.
"""

import logging
from typing import Any, Optional, Union

from code_variants.config.models import LoadVariantOptions
from code_variants.errors import (
    CodeVariantError,
    ConfigurationError,
    LoadVariantMetaError,
)
from code_variants.models.enums import LoadStage
from code_variants.models.externals import Externals
from code_variants.models.results import VariantLoadResult
from code_variants.models.variant import Variant, VariantExtraFiles, root_text_node
from code_variants.pipeline.cache import LoadSourceCache
from code_variants.pipeline.enhance import enhance_variant
from code_variants.pipeline.externals import externals_to_packaged, merge_externals
from code_variants.pipeline.extra_files import load_extra_files, partition_resolvable
from code_variants.pipeline.globals import resolve_globals
from code_variants.pipeline.language import resolve_language
from code_variants.pipeline.paths import get_file_name_from_url, normalize_path_key
from code_variants.pipeline.single_file import load_single_file
from code_variants.pipeline.validation import validate_extra_file_keys
from code_variants.utils.collaborators import call_collaborator
from code_variants.utils.logging import StageTimer

logger = logging.getLogger("code_variants.pipeline.variant")


def dedupe(items: list[str]) -> list[str]:
    """Remove duplicates keeping the first occurrence."""
    return list(dict.fromkeys(items))


async def resolve_variant_meta(
    variant_name: str,
    url: str,
    options: LoadVariantOptions,
) -> Variant:
    """Turn an identifier into variant metadata.

    Uses ``load_variant_meta`` when supplied; otherwise derives the file name
    from the identifier.

    Raises:
        ConfigurationError: If no file name can be derived.
        LoadVariantMetaError: If the collaborator fails.
    """
    if options.load_variant_meta is None:
        file_name, _ = get_file_name_from_url(url)
        if not file_name:
            raise ConfigurationError(
                f"Cannot determine a file name from URL '{url}'. Provide a load_variant_meta "
                "function or use a URL ending in a file name",
                variant=variant_name,
                url=url,
            )
        return Variant(url=url, file_name=file_name)

    try:
        meta = await call_collaborator(options.load_variant_meta, variant_name, url)
    except CodeVariantError as e:
        raise e.with_context(variant=variant_name, url=url)
    except Exception as e:
        raise LoadVariantMetaError(
            f"Failed to load variant metadata: {e}", variant=variant_name, url=url
        ) from e

    return meta if isinstance(meta, Variant) else Variant.model_validate(meta)


async def load_code_variant(
    url: Optional[str],
    variant_name: str,
    variant: Union[Variant, str, dict[str, Any], None],
    options: Optional[LoadVariantOptions] = None,
    cache: Optional[LoadSourceCache] = None,
) -> VariantLoadResult:
    """Resolve a variant into its packaged form.

    Loads the main file, merges declared, discovered and globals extra files,
    resolves them recursively and merges the externals of every file. Source
    enhancers, if any, run last over every parsed file.

    Args:
        url: Identifier of the main file (falls back to ``variant.url``).
        variant_name: Name of the variant.
        variant: Variant metadata, or an identifier to resolve into it.
        options: Collaborators and flags.
        cache: Load cache to share; a new one is created for top-level calls.

    Returns:
        VariantLoadResult with the final variant, its dependencies (main file
        first) and the full externals map.

    Raises:
        CodeVariantError: Any failure, carrying variant, file and URL context.
    """
    if variant is None:
        raise ConfigurationError(f"Variant is missing from code: {variant_name}", variant=variant_name)

    options = options or LoadVariantOptions()
    cache = cache if cache is not None else LoadSourceCache()
    timer = StageTimer(logger, f"variant '{variant_name}'")
    timer.mark(LoadStage.INIT.value)

    try:
        result = await _load(url, variant_name, variant, options, cache, timer)
        if options.source_enhancers:
            try:
                enhanced = await enhance_variant(result.code, options.source_enhancers)
            except CodeVariantError as e:
                raise e.with_context(variant=variant_name, url=result.code.url)
            result = result.model_copy(update={"code": enhanced})
    except CodeVariantError:
        timer.mark(LoadStage.FAILED.value)
        raise

    timer.mark(LoadStage.DONE.value)
    return result


async def _load(
    url: Optional[str],
    variant_name: str,
    variant: Union[Variant, str, dict[str, Any]],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
    timer: StageTimer,
) -> VariantLoadResult:
    if isinstance(variant, str):
        variant = await resolve_variant_meta(variant_name, variant, options)
    elif not isinstance(variant, Variant):
        variant = Variant.model_validate(variant)

    url = url or variant.url
    file_name = variant.file_name or (get_file_name_from_url(url)[0] if url else None) or None
    language = resolve_language(variant.language, file_name, url)

    if not file_name and not url:
        return await _load_nameless(variant_name, variant, language, options, cache)

    if not file_name:
        raise ConfigurationError(
            "No file name available. Provide a fileName or a URL ending in a file name",
            variant=variant_name,
            url=url,
        )

    declared = variant.extra_files or {}
    known_extra_files = frozenset(normalize_path_key(key) for key in declared)

    main = await load_single_file(
        variant_name,
        file_name,
        variant.source,
        url,
        options,
        cache,
        transforms=variant.transforms,
        language=language,
        all_files_listed=bool(variant.all_files_listed),
        known_extra_files=known_extra_files,
    )
    timer.mark(LoadStage.MAIN_FILE_LOADED.value)

    validate_extra_file_keys(declared, variant=variant_name, file_name=file_name, url=url)

    pending: VariantExtraFiles = {
        normalize_path_key(key): entry
        for key, entry in {**declared, **(main.extra_files or {})}.items()
    }
    dependencies: list[str] = [url] if url else []
    dependencies.extend(main.extra_dependencies or [])
    externals: Externals = merge_externals([main.externals])

    globals_file_keys: set[str] = set()
    if options.globals_code:
        existing_names = {file_name, *pending}
        injected = await resolve_globals(
            variant_name,
            options.globals_code,
            existing_names,
            options,
            cache,
            load_code_variant,
        )
        pending.update(injected.extra_files)
        globals_file_keys = injected.file_keys
        dependencies.extend(injected.dependencies)
        externals = merge_externals([externals, injected.externals])
    timer.mark(LoadStage.GLOBALS_RESOLVED.value)

    extra_files: VariantExtraFiles = {}
    pending = partition_resolvable(variant_name, pending, url, options)
    if pending:
        resolved = await load_extra_files(
            variant_name,
            pending,
            url,
            url,
            options,
            cache,
            options.max_depth,
            loaded_files=frozenset([url]) if url else frozenset(),
            all_files_listed=bool(variant.all_files_listed),
            known_extra_files=known_extra_files,
            globals_file_keys=globals_file_keys,
        )
        extra_files = resolved.extra_files
        dependencies.extend(resolved.dependencies)
        externals = merge_externals([externals, resolved.externals])
    timer.mark(LoadStage.EXTRA_FILES_RESOLVED.value)

    code = variant.model_copy(
        update={
            "url": variant.url or url,
            "file_name": file_name,
            "language": language,
            "source": main.source,
            "transforms": main.transforms,
            "extra_files": extra_files or None,
            "externals": externals_to_packaged(externals),
        }
    )

    return VariantLoadResult(code=code, dependencies=dedupe(dependencies), externals=externals)


async def _load_nameless(
    variant_name: str,
    variant: Variant,
    language: Optional[str],
    options: LoadVariantOptions,
    cache: LoadSourceCache,
) -> VariantLoadResult:
    """Handle a variant with neither a file name nor a URL.

    With a language and parsing enabled the source is parsed under an empty
    file name; otherwise raw text is only wrapped into a one-node tree.
    """
    source = variant.source
    update: dict[str, Any] = {"language": language}

    if isinstance(source, str) and language and not options.disable_parsing:
        parsed = await load_single_file(
            variant_name,
            "",
            source,
            None,
            options,
            cache,
            transforms=variant.transforms,
            language=language,
        )
        update["source"] = parsed.source
        update["transforms"] = parsed.transforms
    elif isinstance(source, str):
        update["source"] = root_text_node(source)

    return VariantLoadResult(code=variant.model_copy(update=update))
