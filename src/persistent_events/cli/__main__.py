"""CLI entry point.

Usage:
    python -m persistent_events.cli bindings list user.created
    persistent-events bindings add user.created myapp.hooks:send_welcome_email
"""

import sys

from loguru import logger

import persistent_events
from persistent_events.cli.app import app


def _configure_cli_logging() -> None:
    """Configure loguru for CLI (compact format: level + message, no timestamps)."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | <level>{message}</level>",
        level="INFO",
        colorize=True,
    )
    logger.enable(persistent_events.__name__)


def main() -> None:
    """CLI entry point with logging configuration."""
    _configure_cli_logging()
    app()


if __name__ == "__main__":
    main()
