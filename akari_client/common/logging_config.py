from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
import weakref
from typing import TYPE_CHECKING

from nicegui import ui

if TYPE_CHECKING:
    from akari_client.services.dispatcher import FailureChannel

_LEVEL_COLORS = {
    "TRACE": "\033[32m",  # green
    "DEBUG": "\033[36m",  # cyan
    "INFO": "\033[37m",  # light gray
    "WARNING": "\033[33m",  # yellow
    "ERROR": "\033[31m",  # red
    "CRITICAL": "\033[41m",  # red background
}
_RESET = "\033[0m"
_DIM = "\033[2m"

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

if not hasattr(logging.Logger, "trace"):

    def _trace(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    logging.Logger.trace = _trace  # type: ignore[attr-defined]
    logging.TRACE = TRACE  # type: ignore[attr-defined]

# Per-poll trace lines are skipped entirely unless explicitly enabled
TRACE_ENABLED = str(os.getenv("AKARI_TRACE", "0")).lower() in ("1", "true", "yes", "on")

# Chatty third-party loggers capped at WARNING unless we run at DEBUG or below
_NOISY_LOGGERS = ("aiohttp", "nicegui", "uvicorn", "asyncio")


class AnsiColorFormatter(logging.Formatter):
    """Compact `HH:MM:SS LEVEL name: msg` with colored level on a tty."""

    def __init__(self, colored: bool = True) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )
        self.colored = colored and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        if not self.colored:
            return base
        level = record.levelname.upper()
        color = _LEVEL_COLORS.get(level, "")
        ts, _, rest = base.partition(" ")
        if color:
            rest = rest.replace(level, f"{color}{level}{_RESET}", 1)
        return f"{_DIM}{ts}{_RESET} {rest}"


# ---- NiceGUI panel log sink ----

_ui_log_targets: set[weakref.ref] = set()
_ui_lock = threading.Lock()


class NiceGuiLogHandler(logging.Handler):
    """Mirror log records into the operator panel's ui.log widgets."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%H:%M:%S"
            )
        )

    def emit(self, record: logging.LogRecord) -> None:
        if not _ui_log_targets:
            return
        msg = self.format(record)
        with _ui_lock:
            for ref in list(_ui_log_targets):
                widget = ref()
                if widget is None:
                    _ui_log_targets.discard(ref)
                    continue
                try:
                    widget.push(msg)
                except Exception:
                    # Client disconnected; forget the widget
                    _ui_log_targets.discard(ref)


def attach_ui_log(log_widget: ui.log) -> None:
    """Register a ui.log widget as a sink for log records."""
    try:
        ref = weakref.ref(log_widget)
    except TypeError:
        return
    with _ui_lock:
        _ui_log_targets.add(ref)


def detach_ui_log(log_widget: ui.log) -> None:
    try:
        ref = weakref.ref(log_widget)
    except TypeError:
        return
    with _ui_lock:
        _ui_log_targets.discard(ref)


def _have_console_handler(logger: logging.Logger) -> bool:
    return any(
        isinstance(h, logging.StreamHandler)
        and isinstance(h.formatter, AnsiColorFormatter)
        for h in logger.handlers
    )


def _have_ui_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h, NiceGuiLogHandler) for h in logger.handlers)


def configure_logging(
    level: int = logging.INFO, use_color: bool = True, add_ui_handler: bool = True
) -> logging.Logger:
    """
    Configure the root logger with:
      - ANSI-colored console handler (stderr)
      - optional NiceGUI handler mirroring records to the panel log
    Idempotent across multiple calls; a repeated call only updates levels.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    if not _have_console_handler(logger):
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(AnsiColorFormatter(colored=use_color))
        logger.addHandler(console)

    if add_ui_handler and not _have_ui_handler(logger):
        logger.addHandler(NiceGuiLogHandler(level=max(level, logging.INFO)))

    for h in logger.handlers:
        if not isinstance(h, NiceGuiLogHandler):
            h.setLevel(level)

    lib_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(lib_level)

    return logger


async def consume_failures(channel: FailureChannel) -> None:
    """
    Observability consumer: log every failure report the device client emits.

    A report repeating the previous source and operation is logged at DEBUG,
    so an outage shows up once in the panel instead of at poll rate.
    """
    log = logging.getLogger("akari_client.failures")
    last: tuple[str, str] | None = None
    while True:
        rep = await channel.get()
        key = (rep.source, rep.operation)
        level = logging.DEBUG if key == last else logging.INFO
        log.log(level, "[%s] %s: %s", rep.source, rep.operation, rep.error)
        last = key


def start_failure_consumer(channel: FailureChannel) -> asyncio.Task:
    return asyncio.create_task(consume_failures(channel), name="akari-failure-log")
