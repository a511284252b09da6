"""
CLI layer for verdocs.

Provides a Typer application whose commands delegate to the publish
pipeline (``verdocs.publish``). This package handles only terminal
transport: argument parsing, coloured output and table formatting.

Entry point::

    verdocs --help
"""

from verdocs.cli.app import app, main

__all__ = ["app", "main"]
