"""Variant data models.

A variant is one named rendition of a documentation code sample (for example
the JavaScript and the TypeScript version of the same demo). The packaged form
produced by ``Variant.to_packaged`` is a plain JSON-serializable dict using the
camelCase keys consumed by renderers.
"""

from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class HastJsonSource(CamelModel):
    """A parsed tree serialized to a JSON string."""

    hast_json: str


class HastGzipSource(CamelModel):
    """A parsed tree serialized to JSON, gzipped and base64 encoded."""

    hast_gzip: str


# Parsed trees are plain dicts shaped like HAST nodes:
# {"type": "root", "children": [{"type": "element", ...}, {"type": "text", "value": ...}]}
HastRoot = dict[str, Any]

VariantSource = Annotated[
    Union[str, HastJsonSource, HastGzipSource, HastRoot],
    Field(union_mode="left_to_right"),
]

# Line number -> comments attached to that line
Comments = dict[int, list[str]]


class Transform(CamelModel):
    """A named alternate rendition of a file stored as a delta."""

    delta: Any = None
    file_name: Optional[str] = None


Transforms = dict[str, Transform]


class ExtraFile(CamelModel):
    """Inline content of an extra file."""

    source: Optional[VariantSource] = None
    language: Optional[str] = None
    transforms: Optional[Transforms] = None
    metadata: Optional[bool] = None
    comments: Optional[Comments] = None


# Either an identifier (URL) to load, or inline content
ExtraFileEntry = Union[str, ExtraFile]
VariantExtraFiles = dict[str, ExtraFileEntry]


class Variant(CamelModel):
    """A named rendition of a code sample."""

    url: Optional[str] = None
    file_name: Optional[str] = None
    source: Optional[VariantSource] = None
    language: Optional[str] = None
    extra_files: Optional[VariantExtraFiles] = None
    transforms: Optional[Transforms] = None
    externals: Optional[list[str]] = None
    all_files_listed: Optional[bool] = None
    metadata_prefix: Optional[str] = None
    comments: Optional[Comments] = None

    @property
    def file_names(self) -> list[str]:
        """Main file name followed by every extra file name."""
        names = [self.file_name] if self.file_name else []
        if self.extra_files:
            names.extend(self.extra_files.keys())
        return names

    def to_packaged(self) -> dict[str, Any]:
        """Return the JSON-serializable packaged form of this variant."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Variant name -> full variant or identifier still to be resolved
Code = dict[str, Union[Variant, str]]


def root_text_node(text: str) -> HastRoot:
    """Wrap raw text into a minimal one-node tree."""
    return {"type": "root", "children": [{"type": "text", "value": text}]}


def is_hast_root(source: Any) -> bool:
    """Check whether a source is an in-memory parsed tree."""
    return isinstance(source, dict) and source.get("type") == "root"
