"""
Command-line interface for promptcraft.

Click commands drive a PromptSession; rich progress output goes to stderr.
"""

from promptcraft.cli.commands import cli, main

__all__ = ["cli", "main"]
