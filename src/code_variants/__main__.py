"""Entry point for running code-variants as a module.

Usage:
    python -m code_variants [command] [options]
"""

from code_variants.cli.main import app

if __name__ == "__main__":
    app()
