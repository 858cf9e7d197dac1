"""Merging of externals contributed by individual files."""

from typing import Iterable, Optional

from code_variants.models.externals import ExternalImport, Externals


def merge_externals(externals_list: Iterable[Optional[Externals]]) -> Externals:
    """Merge several externals maps into one.

    Module names keep their first-seen order and each module's import list is
    the concatenation of all contributions in input order. An import that is
    identical to one already recorded for the same module is not repeated.

    Args:
        externals_list: Externals maps, ``None`` entries are skipped.

    Returns:
        A new merged externals map.
    """
    merged: Externals = {}

    for externals in externals_list:
        if not externals:
            continue
        for module_name, imports in externals.items():
            existing = merged.setdefault(module_name, [])
            for item in imports:
                imported = (
                    item if isinstance(item, ExternalImport)
                    else ExternalImport.model_validate(item)
                )
                if imported not in existing:
                    existing.append(imported)

    return merged


def externals_to_packaged(externals: Externals) -> Optional[list[str]]:
    """Reduce an externals map to the module names stored on a packaged variant."""
    return list(externals.keys()) if externals else None
