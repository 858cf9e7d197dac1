"""Command line interface for code variants."""
