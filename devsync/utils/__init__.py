"""
Shared helpers: console output, logging and file operations.
"""

from devsync.utils.rich_console import get_console, get_console_logger, print_table

__all__ = ["get_console", "get_console_logger", "print_table"]
