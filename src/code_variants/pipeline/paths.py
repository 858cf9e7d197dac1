"""Path helpers for extra-file keys and virtual file locations.

Extra-file keys are POSIX-style paths relative to the file that declares them.
Values are opaque identifiers (usually URLs). The helpers here rebase keys
across recursion levels and compute a consistent virtual location for a main
file and its extra files, even when their URLs share no common root.
"""

import posixpath
from typing import Mapping, Optional, Union
from urllib.parse import urljoin, urlsplit

from code_variants.models.variant import ExtraFile

FileEntry = Union[str, ExtraFile, Mapping]


def is_absolute_path(path: str) -> bool:
    """Check if a path is absolute (filesystem absolute or URL)."""
    return path.startswith("/") or "://" in path


def is_relative_reference(value: str) -> bool:
    """Check if a value is an explicit relative reference (``./`` or ``../``)."""
    return value.startswith(".")


def normalize_path_key(key: str) -> str:
    """Normalize a relative key, dropping ``./`` prefixes and ``.`` segments."""
    if key in ("", "."):
        return ""
    normalized = posixpath.normpath(key)
    return "" if normalized == "." else normalized


def convert_key_based_on_directory(nested_key: str, source_file_key: str) -> str:
    """Rebase a key declared by a nested file onto the entry file.

    Args:
        nested_key: Key relative to the nested (declaring) file.
        source_file_key: Key of the declaring file, relative to the entry file.

    Returns:
        The nested key relative to the entry file.
    """
    if is_absolute_path(nested_key):
        return nested_key

    source_dir = posixpath.dirname(source_file_key)
    return normalize_path_key(posixpath.join(source_dir, nested_key))


def resolve_reference(base: str, reference: str) -> str:
    """Resolve a relative reference against the identifier of its declaring file."""
    if "://" in base:
        return urljoin(base, reference)
    return posixpath.normpath(posixpath.join(posixpath.dirname(base), reference))


def get_file_name_from_url(url: str) -> tuple[str, str]:
    """Extract the file name and extension from a URL or path.

    Query strings and fragments are ignored. A name without a dot, or whose only
    dot is the first character, has no extension.

    Returns:
        Tuple of (file name, extension including the dot).
    """
    if not url:
        return "", ""

    path = urlsplit(url).path if "://" in url else url.split("?")[0].split("#")[0]
    file_name = path.rsplit("/", 1)[-1]
    return file_name, split_extension(file_name)[1]


def split_extension(file_name: str) -> tuple[str, str]:
    """Split a file name into stem and extension at its last dot."""
    index = file_name.rfind(".")
    if index <= 0:
        return file_name, ""
    return file_name[:index], file_name[index:]


def resolve_relative_path(relative_path: str) -> tuple[str, int]:
    """Resolve ``.`` and ``..`` segments of a relative path.

    Returns:
        Tuple of (resolved path, number of ``..`` steps above the start directory).
    """
    resolved: list[str] = []
    back_steps = 0

    for segment in relative_path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if resolved:
                resolved.pop()
            else:
                back_steps += 1
        else:
            resolved.append(segment)

    return "/".join(resolved), back_steps


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments."""
    return [part for part in path.split("/") if part]


def get_url_parts(url: str) -> list[str]:
    """Return the non-empty path segments of a URL."""
    return split_path(urlsplit(url).path)


def remove_trailing_slash(path: str) -> str:
    """Remove one trailing slash."""
    return path[:-1] if path.endswith("/") else path


def remove_back_navigation_prefix(path: str, count: int) -> str:
    """Strip up to ``count`` leading ``../`` prefixes."""
    result = path
    for _ in range(count):
        if not result.startswith("../"):
            break
        result = result[3:]
    return result


def _is_metadata(entry: FileEntry) -> bool:
    if isinstance(entry, ExtraFile):
        return bool(entry.metadata)
    if isinstance(entry, Mapping):
        return bool(entry.get("metadata"))
    return False


def calculate_max_back_navigation(files: Mapping[str, FileEntry]) -> tuple[int, int]:
    """Compute the deepest back navigation over a set of extra files.

    Returns:
        Tuple of (max steps over all files, max steps over non-metadata files).
    """
    max_back = 0
    max_source_back = 0

    for relative_path, entry in files.items():
        _, back_steps = resolve_relative_path(relative_path)
        if not _is_metadata(entry):
            max_source_back = max(max_source_back, back_steps)
        max_back = max(max_back, back_steps)

    return max_back, max_source_back


def calculate_max_source_back_navigation(files: Mapping[str, FileEntry]) -> int:
    """Maximum ``../`` steps needed to reach any non-metadata file."""
    return calculate_max_back_navigation(files)[1]


def build_path(*segments: Union[str, list[str], None]) -> str:
    """Join path segments, skipping empty ones and trailing slashes."""
    parts: list[str] = []
    for segment in segments:
        if segment is None:
            continue
        if isinstance(segment, list):
            parts.extend(segment)
        else:
            parts.append(segment)
    return "/".join(remove_trailing_slash(part) for part in parts if part)


def create_synthetic_directories(count: int) -> list[str]:
    """Generate placeholder directory names: a, b, ..., z, aa, ab, ..."""
    names = []
    for index in range(count):
        name = ""
        number = index + 1
        while number > 0:
            number -= 1
            name = chr(97 + number % 26) + name
            number //= 26
        names.append(name)
    return names


def calculate_metadata_back_navigation(
    files: Optional[Mapping[str, FileEntry]],
    metadata_prefix: Optional[str] = None,
) -> str:
    """Build the ``../`` pattern that positions metadata files above the sources."""
    back_levels = calculate_max_source_back_navigation(files) if files else 0
    if metadata_prefix:
        back_levels += len(split_path(metadata_prefix))
    return "../" * back_levels


def calculate_main_file_path(
    url: str,
    max_back_nav: int,
    max_source_back_nav: Optional[int] = None,
    metadata_prefix: Optional[str] = None,
    file_name: Optional[str] = None,
) -> str:
    """Derive a virtual ``file:///`` path for a main file.

    The path keeps as many real directories from the URL as the extra files need
    to navigate back into, inserts the metadata prefix, and fills whatever the URL
    cannot provide with synthetic directories.

    Args:
        url: URL (or plain path) of the main file.
        max_back_nav: Deepest ``../`` navigation over all extra files.
        max_source_back_nav: Deepest navigation over non-metadata files.
        metadata_prefix: Synthetic path under which the sources are nested.
        file_name: Overrides the file name taken from the URL.

    Returns:
        The virtual path, or an empty string for an empty URL.
    """
    if not url:
        return ""

    source_back = max_back_nav if max_source_back_nav is None else max_source_back_nav

    if "://" in url:
        parsed = urlsplit(url)
        has_trailing_slash = parsed.path.endswith("/")
        segments = split_path(parsed.path)
        base_name = "" if has_trailing_slash or not segments else segments.pop()
        suffix = (f"?{parsed.query}" if parsed.query else "") + (
            f"#{parsed.fragment}" if parsed.fragment else ""
        )
    else:
        has_trailing_slash = url.endswith("/")
        segments = split_path(url)
        base_name = "" if has_trailing_slash or not segments else segments.pop()
        suffix = ""

    if file_name is not None:
        name = file_name
    else:
        name = base_name + suffix
        if has_trailing_slash and not base_name:
            name = f"{name}/"

    remaining = list(segments)
    source_path = remaining[len(remaining) - source_back:] if source_back > 0 else []
    if source_back > 0:
        remaining = remaining[: max(0, len(remaining) - source_back)]

    unhandled = max_back_nav - source_back
    unhandled += source_back - len(source_path)

    prefix_segments = split_path(metadata_prefix or "")
    unhandled -= len(prefix_segments)

    needed = max(0, unhandled)
    available = min(needed, len(remaining))
    metadata_path = remaining[len(remaining) - available:] if available > 0 else []

    synthetic = create_synthetic_directories(needed - available)

    path = build_path(synthetic, metadata_path, prefix_segments, source_path, name)
    return f"file:///{path}" if path else path
