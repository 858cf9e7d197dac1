"""Source transforms stored as deltas.

Transformers produce alternate texts for a file (for example a JavaScript
rendition of a TypeScript demo). Each alternate is kept as a delta against the
file's baseline: a line delta while the baseline is raw text, a tree delta once
the baseline has been parsed.
"""

import asyncio
import logging
import posixpath
from typing import Any, Callable, Mapping, Optional

from code_variants.config.models import SourceTransformer
from code_variants.models.variant import Code, ExtraFile, Transform, Transforms, Variant
from code_variants.pipeline.deltas import apply_delta, apply_line_delta, diff_lines, diff_tree
from code_variants.pipeline.language import resolve_language
from code_variants.pipeline.serialization import decode_source
from code_variants.utils.collaborators import call_collaborator

logger = logging.getLogger("code_variants.pipeline.transforms")


def _alternate_fields(alternate: Any) -> tuple[str, Optional[str]]:
    if isinstance(alternate, Mapping):
        return alternate["source"], alternate.get("fileName", alternate.get("file_name"))
    return alternate.source, getattr(alternate, "file_name", None)


async def transform_source(
    source: str,
    file_name: str,
    transformers: list[SourceTransformer],
) -> Optional[Transforms]:
    """Run the matching transformers and store their output as line deltas.

    Args:
        source: Baseline raw text.
        file_name: File name used to match transformer extensions.
        transformers: Registered transformers.

    Returns:
        Transforms keyed by name, or ``None`` if no transformer produced any.
    """
    alternates: dict[str, Any] = {}
    for transformer in transformers:
        if not transformer.matches(file_name):
            continue
        produced = await call_collaborator(transformer.transformer, source, file_name)
        if produced:
            alternates.update(produced)

    if not alternates:
        return None

    transforms: Transforms = {}
    for name, alternate in alternates.items():
        text, alternate_file_name = _alternate_fields(alternate)
        transforms[name] = Transform(delta=diff_lines(source, text), file_name=alternate_file_name)

    logger.debug(f"{file_name}: computed transforms {', '.join(transforms)}")
    return transforms


async def diff_parsed_transforms(
    source: str,
    parsed: Any,
    file_name: str,
    transforms: Transforms,
    parse_source: Callable[..., Any],
    language: Optional[str] = None,
) -> Transforms:
    """Recompute line-delta transforms as tree deltas against a parsed baseline.

    Each transform is replayed on the raw text, the result is parsed (with the
    transform's own file name when it has one) and diffed against ``parsed``.

    Args:
        source: Raw baseline text the line deltas were computed against.
        parsed: Parsed baseline tree.
        file_name: File name of the baseline.
        transforms: Transforms holding line deltas.
        parse_source: Parser collaborator.
        language: Language of the baseline.

    Returns:
        Transforms holding tree deltas.
    """

    async def rediff(transform: Transform) -> Transform:
        text = apply_line_delta(source, transform.delta)
        target_file_name = transform.file_name or file_name
        target_language = resolve_language(None, transform.file_name) or language
        parsed_target = await call_collaborator(parse_source, text, target_file_name, target_language)
        return Transform(delta=diff_tree(parsed, parsed_target), file_name=transform.file_name)

    names = list(transforms)
    results = await asyncio.gather(*(rediff(transforms[name]) for name in names))
    return dict(zip(names, results))


def apply_transform(source: Any, transform: Transform) -> Any:
    """Replay a transform against its baseline source.

    Serialized trees are decoded first, so the result is raw text or a tree.
    """
    return apply_delta(decode_source(source), transform.delta)


def is_empty_delta(delta: Any) -> bool:
    """Check whether a delta leaves its baseline unchanged."""
    if delta is None:
        return True
    if isinstance(delta, list):
        return all(op and op[0] == "=" for op in delta)
    return False


def apply_code_transform(variant: Variant, transform_name: str) -> Variant:
    """Produce the variant as it looks with the named transform applied.

    Files without that transform keep their source. File-name overrides carried
    by the transform rename the main file or the extra-file key. The result
    carries no transforms.
    """
    update: dict[str, Any] = {"transforms": None}

    main_transform = (variant.transforms or {}).get(transform_name)
    if main_transform is not None and variant.source is not None:
        update["source"] = apply_transform(variant.source, main_transform)
        if main_transform.file_name:
            update["file_name"] = main_transform.file_name

    if variant.extra_files:
        extra_files = {}
        for key, entry in variant.extra_files.items():
            if not isinstance(entry, ExtraFile):
                extra_files[key] = entry
                continue

            transform = (entry.transforms or {}).get(transform_name)
            if transform is None or entry.source is None:
                extra_files[key] = entry.model_copy(update={"transforms": None})
                continue

            new_key = key
            if transform.file_name:
                new_key = posixpath.join(posixpath.dirname(key), transform.file_name)
            extra_files[new_key] = entry.model_copy(
                update={"source": apply_transform(entry.source, transform), "transforms": None}
            )
        update["extra_files"] = extra_files

    return variant.model_copy(update=update)


def get_available_transforms(code: Code, variant_name: str) -> list[str]:
    """List transforms of a variant that actually change at least one file."""
    variant = code.get(variant_name)
    if not isinstance(variant, Variant):
        return []

    available: list[str] = []

    def collect(transforms: Optional[Transforms]) -> None:
        for name, transform in (transforms or {}).items():
            if name not in available and not is_empty_delta(transform.delta):
                available.append(name)

    collect(variant.transforms)
    for entry in (variant.extra_files or {}).values():
        if isinstance(entry, ExtraFile):
            collect(entry.transforms)

    return available
