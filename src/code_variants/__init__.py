"""Code Variants.

Resolves documentation code samples into their packaged form: loads the main
file of each variant, follows the extra files it declares or imports, injects
shared globals files, parses sources into trees and stores alternate
renditions as deltas.
"""

__version__ = "0.1.0"

from code_variants.config.models import FallbackOptions, LoadVariantOptions
from code_variants.errors import CodeVariantError
from code_variants.models.variant import Code, ExtraFile, Variant
from code_variants.pipeline.fallback import load_fallback_code
from code_variants.pipeline.variant import load_code_variant

__all__ = [
    "__version__",
    "Code",
    "CodeVariantError",
    "ExtraFile",
    "FallbackOptions",
    "LoadVariantOptions",
    "Variant",
    "load_code_variant",
    "load_fallback_code",
]
