"""
Utilities Module

Logging setup, console output and formatting helpers shared by the CLI.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 3

console = Console(stderr=True)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_rich: bool = True
) -> logging.Logger:
    """
    Configure the ``dirseal`` logger.

    Console output goes through rich when enabled, otherwise a plain
    stream handler on stderr. A rotating log file is added when
    ``log_file`` is set.

    Args:
        level: Console log level name
        log_file: Optional path of a log file (always at DEBUG)
        use_rich: Use rich formatting for console output

    Returns:
        The configured package logger
    """
    logger = logging.getLogger('dirseal')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if use_rich:
        console_handler = RichHandler(console=console, show_path=False, markup=False)
        console_handler.setFormatter(logging.Formatter('%(message)s'))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    console_handler.setLevel(level.upper())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if log_file else level.upper())
    logger.propagate = False
    return logger


def log_file_paths(log_file: str) -> List[str]:
    """The log file and every backup name its rotation can produce."""
    return [log_file] + [f"{log_file}.{i}" for i in range(1, LOG_BACKUP_COUNT + 1)]


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB", "PB"]
    i = 0
    size = float(size_bytes)

    while size >= 1024.0 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    return f"{size:.1f} {size_names[i]}"


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format."""
    if seconds < 1:
        return f"{seconds*1000:.0f} ms"
    elif seconds < 60:
        return f"{seconds:.1f} s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f} min"
    return f"{seconds / 3600:.1f} h"


def create_progress() -> Progress:
    """Create the file-count progress bar used during a run."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        console=console,
        transient=True
    )


def print_error(message: str, use_rich: bool = True) -> None:
    """Print error message with formatting."""
    if use_rich:
        console.print(Panel(f"[red]Error: {escape(message)}[/red]", title="Error"))
    else:
        print(f"Error: {message}", file=sys.stderr)


def print_success(message: str, use_rich: bool = True) -> None:
    """Print success message with formatting."""
    if use_rich:
        console.print(Panel(f"[green]{escape(message)}[/green]", title="Success"))
    else:
        print(message)


def print_warning(message: str, use_rich: bool = True) -> None:
    """Print warning message with formatting."""
    if use_rich:
        console.print(Panel(f"[yellow]{escape(message)}[/yellow]", title="Warning"))
    else:
        print(f"Warning: {message}", file=sys.stderr)
