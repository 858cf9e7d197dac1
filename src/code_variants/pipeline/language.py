"""Language derivation from file extensions."""

from typing import Optional

from code_variants.pipeline.paths import get_file_name_from_url

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "jsx",
    ".tsx": "tsx",
    ".json": "json",
    ".md": "markdown",
    ".mdx": "mdx",
    ".html": "html",
    ".css": "css",
    ".sh": "shell",
    ".yaml": "yaml",
    ".yml": "yaml",
}

LANGUAGE_ALIASES: dict[str, str] = {
    "js": "javascript",
    "javascript": "javascript",
    "ts": "typescript",
    "typescript": "typescript",
    "jsx": "jsx",
    "tsx": "tsx",
    "json": "json",
    "md": "markdown",
    "markdown": "markdown",
    "mdx": "mdx",
    "html": "html",
    "css": "css",
    "sh": "shell",
    "bash": "shell",
    "shell": "shell",
    "yaml": "yaml",
    "yml": "yaml",
}


def get_language_from_extension(extension: str) -> Optional[str]:
    """Map an extension (including the dot) to a language name."""
    return LANGUAGE_BY_EXTENSION.get(extension)


def normalize_language(language: str) -> str:
    """Map short aliases to canonical names, leaving unknown languages as is."""
    return LANGUAGE_ALIASES.get(language, language)


def resolve_language(
    language: Optional[str],
    file_name: Optional[str] = None,
    url: Optional[str] = None,
) -> Optional[str]:
    """Pick the language for a file.

    An explicit language wins (normalized). Otherwise it is derived from the
    file name, then from the URL.
    """
    if language:
        return normalize_language(language)

    for candidate in (file_name, url):
        if candidate:
            _, extension = get_file_name_from_url(candidate)
            derived = get_language_from_extension(extension)
            if derived:
                return derived

    return None
