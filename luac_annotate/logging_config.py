"""Logging helpers for the CLI and per-run annotator traces."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .utils import colorize_text

__all__ = [
    "configure_logging",
    "configure_debug_file_logger",
    "close_debug_logger",
]

TRACE_LOGGER_NAME = "luac_annotate.trace"


class _ColourFormatter(logging.Formatter):
    COLOURS = {
        logging.DEBUG: "blue",
        logging.INFO: "green",
        logging.WARNING: "yellow",
        logging.ERROR: "red",
        logging.CRITICAL: "magenta",
    }

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - trivial wrapper
        message = super().format(record)
        colour = self.COLOURS.get(record.levelno, "green")
        return colorize_text(message, colour)


def configure_logging(verbose: bool, log_file: Optional[Path] = None) -> None:
    """Configure root logging handlers.

    Diagnostics always go to stderr so they never interleave with the
    annotated listing on stdout.
    """

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    level = logging.DEBUG if verbose else logging.WARNING
    root.setLevel(level)

    stream = logging.StreamHandler()
    if verbose:
        stream.setFormatter(_ColourFormatter("%(levelname)s: %(message)s"))
    else:
        stream.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(stream)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8", errors="backslashreplace")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(file_handler)


def configure_debug_file_logger(
    name: str,
    path: Path,
    *,
    level: int = logging.DEBUG,
    formatter: logging.Formatter | None = None,
) -> logging.Logger:
    """Return a logger writing debug traces to ``path``.

    Any previously configured trace handlers on ``name`` are removed so repeated
    invocations replace earlier traces instead of appending to them.  The file
    is opened in text mode with UTF-8 encoding; raw listing bytes are written
    as backslash escapes.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    close_debug_logger(logger)

    handler = logging.FileHandler(path, mode="w", encoding="utf-8", errors="backslashreplace")
    handler._annotator_trace = True  # type: ignore[attr-defined]
    if formatter is None:
        formatter = logging.Formatter("%(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def close_debug_logger(logger: logging.Logger) -> None:
    """Tear down handlers installed by :func:`configure_debug_file_logger`."""

    for handler in list(logger.handlers):
        if getattr(handler, "_annotator_trace", False):
            logger.removeHandler(handler)
            handler.close()
