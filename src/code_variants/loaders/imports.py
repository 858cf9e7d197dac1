"""Import discovery for JavaScript, TypeScript and CSS sources."""

import re
from typing import Optional

from pydantic import BaseModel, Field

from code_variants.models.enums import ImportKind
from code_variants.models.externals import ExternalImport, Externals

# import X, { a, b as c } from 'mod' / import * as ns from 'mod' / import type { T } from 'mod'
_IMPORT_FROM = re.compile(
    r"""^\s*import\s+(?P<type>type\s+)?(?P<clause>[\w$*{}\s,]+?)\s+from\s+['"](?P<module>[^'"]+)['"]""",
    re.MULTILINE,
)
# import 'mod' (side effect only)
_IMPORT_BARE = re.compile(r"""^\s*import\s+['"](?P<module>[^'"]+)['"]""", re.MULTILINE)
# export { a } from 'mod' / export * from 'mod'
_EXPORT_FROM = re.compile(
    r"""^\s*export\s+(?:type\s+)?[\w$*{}\s,]+?\s+from\s+['"](?P<module>[^'"]+)['"]""",
    re.MULTILINE,
)
_REQUIRE = re.compile(r"""\brequire\(\s*['"](?P<module>[^'"]+)['"]\s*\)""")
_CSS_IMPORT = re.compile(
    r"""@import\s+(?:url\(\s*)?['"](?P<module>[^'"]+)['"]""",
)

CSS_EXTENSIONS = (".css", ".scss", ".less")
SCRIPT_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")


class DiscoveredImports(BaseModel):
    """Imports found in one source file."""

    relative: list[str] = Field(default_factory=list)
    externals: Externals = Field(default_factory=dict)


def is_relative_import(module: str) -> bool:
    """Check whether an import specifier points at a local file."""
    return module.startswith("./") or module.startswith("../")


def parse_import_clause(clause: str, type_only: bool = False) -> list[ExternalImport]:
    """Turn an import clause like ``React, { useState as s }`` into imported symbols."""
    imports: list[ExternalImport] = []
    is_type = True if type_only else None

    named_match = re.search(r"\{(?P<names>[^}]*)\}", clause)
    remainder = clause[: named_match.start()] + clause[named_match.end():] if named_match else clause

    for part in (piece.strip() for piece in remainder.split(",")):
        if not part:
            continue
        namespace = re.match(r"\*\s+as\s+(?P<name>[\w$]+)", part)
        if namespace:
            imports.append(
                ExternalImport(name=namespace.group("name"), type=ImportKind.NAMESPACE, is_type=is_type)
            )
        else:
            imports.append(ExternalImport(name=part, type=ImportKind.DEFAULT, is_type=is_type))

    if named_match:
        for raw in named_match.group("names").split(","):
            raw = raw.strip()
            if not raw:
                continue
            item_is_type = is_type
            if raw.startswith("type "):
                item_is_type = True
                raw = raw[len("type "):].strip()
            name = raw.split(" as ")[0].strip()
            imports.append(ExternalImport(name=name, type=ImportKind.NAMED, is_type=item_is_type))

    return imports


def discover_imports(source: str, file_name: Optional[str] = None) -> DiscoveredImports:
    """Find relative imports and external modules referenced by a source.

    Args:
        source: File content.
        file_name: File name, used to pick CSS or script syntax.

    Returns:
        Relative import specifiers (in order of appearance, deduplicated) and the
        symbols imported from each bare module.
    """
    discovered = DiscoveredImports()

    def add_relative(module: str) -> None:
        if module not in discovered.relative:
            discovered.relative.append(module)

    if file_name and file_name.endswith(CSS_EXTENSIONS):
        for match in _CSS_IMPORT.finditer(source):
            module = match.group("module")
            if is_relative_import(module):
                add_relative(module)
        return discovered

    for match in _IMPORT_FROM.finditer(source):
        module = match.group("module")
        if is_relative_import(module):
            add_relative(module)
            continue
        symbols = parse_import_clause(match.group("clause"), type_only=bool(match.group("type")))
        existing = discovered.externals.setdefault(module, [])
        existing.extend(symbol for symbol in symbols if symbol not in existing)

    for pattern in (_IMPORT_BARE, _EXPORT_FROM, _REQUIRE):
        for match in pattern.finditer(source):
            module = match.group("module")
            if is_relative_import(module):
                add_relative(module)
            else:
                discovered.externals.setdefault(module, [])

    return discovered
