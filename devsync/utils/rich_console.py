from rich.console import Console
from rich.table import Table
from typing import Any
from rich.logging import RichHandler
import logging
import os


VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# Singleton Console instance
def get_console() -> Console:
    if not hasattr(get_console, "_console"):
        get_console._console = Console()
    return get_console._console


def print_table(headers: list[str], rows: list[list[Any]], title: str | None = None):
    """Print a formatted table using Rich library.

    Args:
        headers (list[str]): Column headers for the table.
        rows (list[list[Any]]): Data rows to display in the table.
        title (str | None, optional): Title of the table. Defaults to None.
    """
    console = get_console()
    table = Table(title=title)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*[str(cell) for cell in row])
    console.print(table)


def resolve_log_level(level_name: str | None) -> int:
    """Map a level name to a logging constant, falling back to INFO."""
    level_name = (level_name or "INFO").upper()
    if level_name not in VALID_LEVELS:
        get_console().print(f"Invalid log level: {level_name}. Using INFO.", style="bold yellow")
        level_name = "INFO"
    return getattr(logging, level_name)


class RichConsoleLogger(logging.Logger):
    def __init__(self, name: str):
        super().__init__(name)

        self.log_level_str = os.getenv("DEVSYNC_LOG_LEVEL", "INFO").upper()
        self.log_level = resolve_log_level(self.log_level_str)
        self.setLevel(self.log_level)

        handler = RichHandler(console=get_console(), rich_tracebacks=True, show_path=False, level=self.log_level)
        self.addHandler(handler)

        # Plain file log alongside the console when debug mode is on
        debug_mode = os.getenv("DEVSYNC_DEBUG", "").lower() in ["true", "1", "yes"]
        if debug_mode:
            log_file = os.getenv("DEVSYNC_LOG_FILE", "devsync.log")
            try:
                file_handler = logging.FileHandler(log_file)
                file_handler.setLevel(self.log_level)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.addHandler(file_handler)
            except OSError as e:
                self.error(f"Failed to set up file logging: {e}")

    def set_level(self, level_name: str) -> None:
        """Change the level of the logger and all of its handlers.

        Args:
            level_name (str): One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        """
        self.log_level = resolve_log_level(level_name)
        self.log_level_str = logging.getLevelName(self.log_level)
        self.setLevel(self.log_level)
        for handler in self.handlers:
            handler.setLevel(self.log_level)

    def success(self, message: str, *args, **kwargs):
        """Log a success message.

        Standard logging has no success level, so this goes out at INFO with a
        check mark and lets RichHandler colour it.

        Args:
            message (str): Success message to display.
        """
        if args:
            message = message % args
        super().info(f"[green]✓ {message}[/green]", extra={"markup": True}, **kwargs)


# Singleton logger instance
_console_logger = None


def get_console_logger() -> RichConsoleLogger:
    """Get a singleton instance of RichConsoleLogger with log level from environment variables.

    Environment variables:
        DEVSYNC_LOG_LEVEL: Set the log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        DEVSYNC_DEBUG: Enable debug mode with file logging (true, 1, yes)
        DEVSYNC_LOG_FILE: Specify the log file path (default: devsync.log)

    Returns:
        RichConsoleLogger: Configured logger instance
    """
    global _console_logger
    if _console_logger is None:
        _console_logger = RichConsoleLogger("devsync")
    return _console_logger

