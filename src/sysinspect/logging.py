"""Console notices with Rich and diagnostic logging with structlog.

Report text goes to stdout. Everything here writes to stderr (and optionally a
JSON Lines file) so it never interleaves with the report itself.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from sysinspect.config import Config

_console = Console(stderr=True, highlight=False)


class Icon:
    """Icon vocabulary for console output."""

    FAIL = "[bold red]✗[/]"
    LIVE = "[magenta]♡[/]"


_LEVEL_STYLES = {
    "info": "[bright_blue]\\[info][/]",
    "error": "[bold red]\\[err][/] ",
}


def log(level: str, msg: str, icon: str = "") -> None:
    """Print a notice with timestamp and level.

    Args:
        level: Log level (info, error)
        msg: Message to print (can include Rich markup)
        icon: Optional icon to show after level (e.g., Icon.FAIL)
    """
    ts = datetime.now().strftime("%H:%M:%S")
    lvl = _LEVEL_STYLES.get(level, f"[{level}]")
    icon_part = f" {icon}" if icon else ""
    _console.print(f"[dim]{ts}[/] {lvl}{icon_part} {msg}")


def info(msg: str, icon: str = "") -> None:
    """Log an info message."""
    log("info", msg, icon)


def error(msg: str, icon: str = "") -> None:
    """Log an error message."""
    log("error", msg, icon)


def procfs_unavailable(root: str, reason: str) -> None:
    """Report that the procfs root cannot be used."""
    error(f"Cannot use procfs root [cyan]{root}[/]: {reason}", Icon.FAIL)


def live_view_stopped(frames: int) -> None:
    """Report the end of the live view."""
    info(f"Live view stopped [dim]({frames} frames)[/]", Icon.LIVE)


def configure(config: Config) -> None:
    """Configure structlog on top of stdlib logging.

    Events at or above the configured level are rendered for humans on
    stderr. When a log file is configured, the same events are also written
    there as JSON Lines.

    Args:
        config: Application config with logging settings
    """
    level = getattr(logging, config.logging.level.upper())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
    ]

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=pre_chain,
        )
    )
    root.addHandler(console_handler)

    if config.log_path is not None:
        config.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_path, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts"),
            structlog.processors.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
