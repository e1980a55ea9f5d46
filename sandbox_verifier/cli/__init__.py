"""CLI application setup using Typer.

Provides the command-line interface for sandbox boundary checks.
"""

from sandbox_verifier.cli.main import app

__all__ = ["app"]
