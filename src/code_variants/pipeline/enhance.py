"""Application of source enhancers to parsed files."""

import logging
from typing import Any, Callable, Optional

from code_variants.errors import CodeVariantError, EnhanceSourceError
from code_variants.models.variant import Code, Comments, ExtraFile, Variant, VariantSource
from code_variants.utils.collaborators import call_collaborator

logger = logging.getLogger("code_variants.pipeline.enhance")

Enhancer = Callable[..., Any]


async def _enhance_source(
    source: Optional[VariantSource],
    comments: Optional[Comments],
    file_name: Optional[str],
    enhancers: list[Enhancer],
) -> Optional[VariantSource]:
    # Only in-memory trees are enhanced; raw text and serialized trees pass through
    if not isinstance(source, dict):
        return source

    tree = source
    for enhancer in enhancers:
        try:
            tree = await call_collaborator(enhancer, tree, comments or {}, file_name or "unknown")
        except CodeVariantError:
            raise
        except Exception as e:
            raise EnhanceSourceError(
                f"Failed to enhance source code: {e}", file_name=file_name
            ) from e
    return tree


async def enhance_variant(variant: Variant, enhancers: list[Enhancer]) -> Variant:
    """Run every enhancer over the main file and inline extra files of a variant.

    Args:
        variant: A resolved variant.
        enhancers: ``(tree, comments, file_name) -> tree`` passes, applied in order.

    Returns:
        A copy of the variant with enhanced trees and comments cleared.
    """
    source = await _enhance_source(variant.source, variant.comments, variant.file_name, enhancers)

    extra_files = None
    if variant.extra_files is not None:
        extra_files = {}
        for key, entry in variant.extra_files.items():
            if isinstance(entry, ExtraFile):
                enhanced = await _enhance_source(entry.source, entry.comments, key, enhancers)
                extra_files[key] = entry.model_copy(update={"source": enhanced, "comments": None})
            else:
                extra_files[key] = entry

    return variant.model_copy(
        update={"source": source, "extra_files": extra_files, "comments": None}
    )


async def enhance_code(code: Code, enhancers: Optional[list[Enhancer]]) -> Code:
    """Apply source enhancers to every resolved variant of a code map.

    Variants that are still identifiers are left unchanged.
    """
    if not enhancers:
        return dict(code)

    enhanced: Code = {}
    for name, variant in code.items():
        if isinstance(variant, Variant):
            logger.debug(f"Enhancing variant '{name}' with {len(enhancers)} enhancer(s)")
            enhanced[name] = await enhance_variant(variant, enhancers)
        else:
            enhanced[name] = variant
    return enhanced
