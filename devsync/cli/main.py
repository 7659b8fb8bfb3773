"""
Main CLI entry point for devsync.
"""

# Standard library imports
import asyncio
import contextlib
import importlib.metadata
import signal
from pathlib import Path
from typing import Optional

# Third-party imports
import typer
from click import UsageError
from typer.core import TyperGroup

# Local imports
from devsync.environment import SettingsError, SyncSettings
from devsync.provision import ProvisionError, prepare_target
from devsync.sync import SyncSessionError
from devsync.sync import start as start_session
from devsync.sync import stop as stop_session
from devsync.utils.rich_console import get_console, get_console_logger, print_table

console = get_console()
logger = get_console_logger()


def print_main_help_and_exit():
    banner = [
        ("green", "     _                                   "),
        ("cyan", "  __| | _____   _____ _   _ _ __   ___  "),
        ("green", " / _` |/ _ \\ \\ / / __| | | | '_ \\ / __| "),
        ("cyan", "| (_| |  __/\\ V /\\__ \\ |_| | | | | (__  "),
        ("green", " \\__,_|\\___| \\_/ |___/\\__, |_| |_|\\___| "),
        ("cyan", "                      |___/             "),
    ]
    for color, line in banner:
        console.print(line, style=color)
    typer.echo("\n Bidirectional file sync for local development environments\n")
    command_rows = [
        ["sync", "Keep a source and a target directory in sync"],
        ["seed", "Copy the source tree into the target, backing up the original"],
        ["version", "Show devsync version"],
    ]
    print_table(["Subcommand", "Description"], command_rows, title="Available devsync Subcommands")
    typer.echo("\nFor more information about a subcommand, run:")
    typer.echo("  devsync <subcommand> --help")
    raise typer.Exit(1)


class HelpOnErrorGroup(TyperGroup):
    def main(self, *args, **kwargs):
        try:
            return super().main(*args, **kwargs)
        except UsageError as error:
            typer.echo(str(error))
            print_main_help_and_exit()


app = typer.Typer(
    cls=HelpOnErrorGroup,
    help="devsync - keep a local working copy and a container-mounted copy in sync.",
)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    devsync - bidirectional file sync for local development
    """
    if ctx.invoked_subcommand is None:
        print_main_help_and_exit()


def _load_settings(**overrides) -> SyncSettings:
    try:
        settings = SyncSettings.load(**overrides)
    except SettingsError as error:
        logger.error(str(error))
        raise typer.Exit(1)
    if settings.debug:
        logger.set_level("DEBUG")
    return settings


async def _run_session(source: Path, target: Path, settings: SyncSettings) -> dict:
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_requested.set)

    session = None
    try:
        session = await start_session(source, target, settings)
        typer.echo(f"Syncing {session.roots.source} ⇄ {session.roots.target} (Ctrl+C to stop)...")
        await stop_requested.wait()
    finally:
        typer.echo("\nStopping file sync...")
        await stop_session(session)
    return session.get_status()


@app.command()
def sync(
    source: Path = typer.Argument(..., help="Local working copy"),
    target: Path = typer.Argument(..., help="Directory mounted into the running environment"),
    seed: bool = typer.Option(False, "--seed/--no-seed", help="Copy source over target before syncing"),
    source_delay: Optional[float] = typer.Option(None, help="Debounce for source changes, in seconds"),
    target_delay: Optional[float] = typer.Option(None, help="Debounce for target changes, in seconds"),
):  # pragma: no cover
    """Watch both directories and copy changed files across.

    Press Ctrl+C to stop syncing.
    """
    settings = _load_settings(source_debounce=source_delay, target_debounce=target_delay)
    if seed:
        _seed(source, target, settings)

    try:
        status = asyncio.run(_run_session(source, target, settings))
    except KeyboardInterrupt:
        typer.echo("\nStopped syncing.")
        return
    except SyncSessionError as error:
        logger.error(f"Could not start file sync: {error}")
        raise typer.Exit(1)

    print_table(
        ["Status", "Value"],
        [
            ["Files copied", status["copies"]],
            ["Events skipped", status["skipped"]],
            ["Failures", status["failures"]],
            ["Tracked files", status["tracked"]],
        ],
        title="Sync Summary",
    )


def _seed(source: Path, target: Path, settings: SyncSettings) -> None:
    try:
        backup = prepare_target(source, target, settings.backup_suffix, settings.ignore_patterns)
    except ProvisionError as error:
        logger.error(str(error))
        raise typer.Exit(1)
    if backup is not None:
        typer.echo(f"Original content saved to {backup}")
    logger.success(f"{target} seeded from {source}")


@app.command()
def seed(
    source: Path = typer.Argument(..., help="Local working copy"),
    target: Path = typer.Argument(..., help="Directory to replace with a copy of the source"),
):
    """Copy the source tree into the target, backing up the target's original content once."""
    settings = _load_settings()
    _seed(source, target, settings)


@app.command()
def version():
    """Show the devsync version."""
    typer.echo(f"devsync version: {importlib.metadata.version('devsync')}")
