"""
Logging for gwarp.

All gwarp loggers live under the ``gwarp`` hierarchy. Console output goes
through a shared Rich console; the QC report helpers print to the same
console.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER = "gwarp"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

console = Console(
    theme=Theme(
        {
            "warning": "yellow",
            "error": "red bold",
            "success": "green",
            "metric": "magenta",
        }
    )
)


def _file_handler(log_file: Path | str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    log_file: Path | str | None = None,
    rich_tracebacks: bool = True,
    show_time: bool | None = None,
    show_path: bool = False,
) -> logging.Logger:
    """
    Configure the ``gwarp`` logger with a Rich console handler.

    Arguments left as None come from the runtime logging settings. A log
    file, when given, receives every record regardless of level.

    Returns:
        The ``gwarp`` logger
    """
    from gwarp.settings import get_settings

    defaults = get_settings().logging
    level = level or defaults.level
    if log_file is None:
        log_file = defaults.log_file
    if show_time is None:
        show_time = defaults.show_time
    numeric_level = getattr(logging, level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=True,
    )
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        logger.addHandler(_file_handler(log_file))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, placed under the ``gwarp`` hierarchy."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class _RecordCollector(logging.Handler):
    def __init__(self, records: list[logging.LogRecord], level: int):
        super().__init__(level)
        self.records = records

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class LogCapture:
    """
    Collect log records emitted inside a ``with`` block.

    The logger level is lowered to ``level`` for the duration of the block
    if needed and restored on exit.
    """

    def __init__(self, logger_name: str = ROOT_LOGGER, level: int = logging.DEBUG):
        self.logger_name = logger_name
        self.level = level
        self.messages: list[logging.LogRecord] = []
        self._handler: logging.Handler | None = None
        self._previous_level: int | None = None

    def __enter__(self) -> "LogCapture":
        logger = logging.getLogger(self.logger_name)
        self._previous_level = logger.level
        if logger.level == logging.NOTSET or logger.level > self.level:
            logger.setLevel(self.level)
        self._handler = _RecordCollector(self.messages, self.level)
        logger.addHandler(self._handler)
        return self

    def __exit__(self, *args) -> None:
        if self._handler is None:
            return
        logger = logging.getLogger(self.logger_name)
        logger.removeHandler(self._handler)
        self._handler = None
        if self._previous_level is not None:
            logger.setLevel(self._previous_level)

    def get_messages(self, level: int | None = None) -> list[str]:
        """Formatted messages at or above ``level`` (all when None)."""
        return [
            r.getMessage() for r in self.messages if level is None or r.levelno >= level
        ]


def log_exception(logger: logging.Logger, exc: BaseException, context: str = "") -> None:
    """Log ``exc`` at error level, prefixed by ``context`` when given."""
    label = context or type(exc).__name__
    detail = f"{type(exc).__name__}: {exc}" if context else str(exc)
    logger.error(f"[error]{label}[/error]: {detail}")


def print_section(title: str) -> None:
    rule = "─" * 60
    console.print(f"\n[bold cyan]{rule}\n  {title}\n{rule}[/bold cyan]\n")


def print_success(message: str) -> None:
    console.print(f"[success]✓[/success] {message}")


def print_warning(message: str) -> None:
    console.print(f"[warning]⚠[/warning] {message}")


def print_metric(name: str, value: str | float | int, unit: str = "") -> None:
    """Print ``name: value unit``; floats get four decimals."""
    text = f"{value:.4f}" if isinstance(value, float) else str(value)
    suffix = f" {unit}" if unit else ""
    console.print(f"  [dim]{name}:[/dim] [metric]{text}[/metric]{suffix}")
