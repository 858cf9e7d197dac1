"""Output modes for parsed trees."""

import base64
import gzip
import json
from typing import Any

from code_variants.models.enums import Environment, OutputMode
from code_variants.models.variant import HastGzipSource, HastJsonSource


def serialize_source(source: Any, output: OutputMode, environment: Environment) -> Any:
    """Store a parsed tree in the requested output mode.

    Raw text is returned unchanged. Gzip output is only produced in production;
    in development it falls back to JSON so payloads stay readable.

    Args:
        source: Parsed tree (or raw text).
        output: Requested output mode.
        environment: Current environment.

    Returns:
        The tree, a ``HastJsonSource`` or a ``HastGzipSource``.
    """
    if isinstance(source, str) or output == OutputMode.HAST:
        return source

    hast_json = json.dumps(source, separators=(",", ":"))

    if output == OutputMode.HAST_GZIP and environment.is_production:
        compressed = gzip.compress(hast_json.encode("utf-8"))
        return HastGzipSource(hast_gzip=base64.b64encode(compressed).decode("ascii"))

    return HastJsonSource(hast_json=hast_json)


def decode_source(source: Any) -> Any:
    """Turn a serialized source back into a tree; other sources pass through."""
    if isinstance(source, HastJsonSource):
        return json.loads(source.hast_json)

    if isinstance(source, HastGzipSource):
        raw = gzip.decompress(base64.b64decode(source.hast_gzip))
        return json.loads(raw.decode("utf-8"))

    if isinstance(source, dict):
        if "hastJson" in source:
            return json.loads(source["hastJson"])
        if "hastGzip" in source:
            return decode_source(HastGzipSource(hast_gzip=source["hastGzip"]))

    return source
