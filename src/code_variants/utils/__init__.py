"""Utility helpers for code variants."""

from code_variants.utils.collaborators import call_collaborator
from code_variants.utils.logging import setup_logging

__all__ = ["call_collaborator", "setup_logging"]
