"""
Main entry point for the devsync CLI.
"""

from devsync.cli import cli


def main() -> None:
    """Main function for the devsync CLI."""
    cli()


if __name__ == "__main__":
    main()
