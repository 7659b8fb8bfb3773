"""
CLI module for devsync.
"""

from devsync.cli.main import app


def cli():
    """Entry point for the CLI."""
    app()


__all__ = ['app', 'cli']
