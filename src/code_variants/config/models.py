"""Pydantic configuration models for code variants."""

from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from code_variants.config.defaults import DEFAULT_MAX_DEPTH
from code_variants.models.enums import Environment, OutputMode


class PipelineConfig(BaseModel):
    """Behavior of the loading pipeline."""

    disable_parsing: bool = False
    disable_transforms: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=100)
    output: OutputMode = OutputMode.HAST
    environment: Environment = Environment.DEVELOPMENT
    # False fails when a relative extra file cannot be resolved for lack of a base URL
    skip_unresolvable_extra_files: bool = True


class LoaderConfig(BaseModel):
    """Settings of the bundled source loaders."""

    root_path: Optional[Path] = None
    timeout_seconds: float = Field(default=30.0, ge=0.1, le=600.0)
    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_delay_seconds: float = Field(default=1.0, ge=0.1, le=60.0)
    discover_imports: bool = True
    encoding: str = "utf-8"


class OutputConfig(BaseModel):
    """Console output configuration."""

    verbosity: int = Field(default=1, ge=0, le=3)
    indent: int = Field(default=2, ge=0, le=8)
    log_file: Optional[Path] = None


class CodeVariantsConfig(BaseModel):
    """Root configuration model."""

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    model_config = ConfigDict(extra="ignore")  # Ignore unknown fields in config file


class SourceTransformer(BaseModel):
    """A producer of named alternate texts for files with matching extensions.

    ``transformer(text, file_name)`` returns ``{name: {"source": text, "fileName": name}}``
    (``fileName`` optional), or ``None`` when it has nothing to offer.
    """

    extensions: list[str]
    transformer: Callable[..., Any]

    def matches(self, file_name: str) -> bool:
        """Check whether this transformer handles ``file_name``."""
        return any(
            file_name.endswith(ext if ext.startswith(".") else f".{ext}")
            for ext in self.extensions
        )


class LoadVariantOptions(BaseModel):
    """Collaborators and flags threaded through every resolution call.

    Collaborators may be plain functions or coroutine functions.

    Attributes:
        load_source: ``(url) -> {source, extraFiles?, extraDependencies?, externals?}``.
        parse_source: ``(text, file_name, language) -> tree``.
        load_variant_meta: ``(variant_name, url) -> Variant``.
        source_transformers: Alternate-text producers matched by extension.
        source_enhancers: ``(tree, comments, file_name) -> tree`` passes run after parsing.
        globals_code: Globals sources (Variant, URL or a per-variant code map).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    load_source: Optional[Callable[..., Any]] = None
    parse_source: Optional[Callable[..., Any]] = None
    load_variant_meta: Optional[Callable[..., Any]] = None
    source_transformers: Optional[list[SourceTransformer]] = None
    source_enhancers: Optional[list[Callable[..., Any]]] = None
    globals_code: Optional[list[Any]] = None

    disable_parsing: bool = False
    disable_transforms: bool = False
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    output: OutputMode = OutputMode.HAST
    environment: Environment = Environment.DEVELOPMENT
    skip_unresolvable_extra_files: bool = True

    @classmethod
    def from_config(cls, config: CodeVariantsConfig, **collaborators: Any) -> "LoadVariantOptions":
        """Build options from a configuration plus collaborator functions."""
        return cls(**config.pipeline.model_dump(), **collaborators)


class FallbackOptions(LoadVariantOptions):
    """Options of the fallback orchestration.

    Attributes:
        should_highlight: Whether the initial file must be parsed.
        fallback_uses_extra_files: Whether all extra files of the variant are needed.
        fallback_uses_all_variants: Whether every known variant must be resolved.
        initial_filename: Specific file requested instead of the main file.
        variants: Variant names to resolve when all variants are requested.
        load_code_meta: ``(url) -> Code`` resolving a whole code map.
    """

    should_highlight: bool = False
    fallback_uses_extra_files: bool = False
    fallback_uses_all_variants: bool = False
    initial_filename: Optional[str] = None
    variants: Optional[list[str]] = None
    load_code_meta: Optional[Callable[..., Any]] = None
