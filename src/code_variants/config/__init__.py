"""Configuration management for code variants."""

from code_variants.config.loader import load_config
from code_variants.config.models import (
    CodeVariantsConfig,
    FallbackOptions,
    LoaderConfig,
    LoadVariantOptions,
    OutputConfig,
    PipelineConfig,
    SourceTransformer,
)

__all__ = [
    "CodeVariantsConfig",
    "FallbackOptions",
    "LoadVariantOptions",
    "LoaderConfig",
    "OutputConfig",
    "PipelineConfig",
    "SourceTransformer",
    "load_config",
]
