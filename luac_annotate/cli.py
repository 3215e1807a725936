"""Command line entry point: annotate a ``luac -l -l`` listing.

Usage examples::

    luac -l -l -p script.lua | luac-annotate
    luac-annotate --lua51 listing.txt -o listing.annotated.txt
    luac-annotate --lua53 --list-opcodes
"""

from __future__ import annotations

import argparse
import io
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence, TextIO

from . import __version__
from .exceptions import AnnotatorError
from .io.loader import LISTING_ENCODING, LISTING_ERRORS, read_listing
from .listing.annotator import AnnotationLayout, Annotator
from .listing.symbols import parse_symbol_tables
from .logging_config import (
    TRACE_LOGGER_NAME,
    close_debug_logger,
    configure_debug_file_logger,
    configure_logging,
)
from .utils import split_lines
from .versions import available_versions, select_opcode_table, version_flag

LOGGER = logging.getLogger(__name__)


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="luac-annotate",
        description="Annotate a 'luac -l -l' listing with opcode formulas and symbol names.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        type=Path,
        default=None,
        help="Listing to annotate. Default reads standard input.",
    )
    versions = parser.add_argument_group(
        "opcode definitions",
        "Select one Lua version. Default merges all versions, newest definitions winning.",
    )
    for version in available_versions():
        versions.add_argument(
            version_flag(version),
            dest="lua_version",
            action="store_const",
            const=version,
            help=f"use the Lua {version} opcode definitions",
        )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Optional destination file. Default prints to stdout.",
    )
    parser.add_argument(
        "--column",
        type=int,
        default=AnnotationLayout.column,
        help=f"Column annotations are aligned to (default: {AnnotationLayout.column})",
    )
    parser.add_argument(
        "--list-opcodes",
        action="store_true",
        help="Print the selected opcode table as JSON and exit",
    )
    parser.add_argument("--trace", type=Path, default=None, help="Write an operand resolution trace to this file")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write log records to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose colourised logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.set_defaults(lua_version=None)
    return parser


def _write_lines(lines: Iterable[str], handle: TextIO) -> None:
    for line in lines:
        handle.write(line)
        handle.write("\n")


def _write_stream(lines: Iterable[str], stream: TextIO) -> None:
    """Write *lines* to *stream*, re-encoding raw listing bytes unchanged.

    Streams without a byte buffer (``io.StringIO``) take the text as is.
    """

    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        _write_lines(lines, stream)
        return
    stream.flush()
    wrapper = io.TextIOWrapper(buffer, encoding=LISTING_ENCODING, errors=LISTING_ERRORS)
    try:
        _write_lines(lines, wrapper)
    finally:
        wrapper.flush()
        wrapper.detach()


def run(
    input_path: Optional[Path],
    *,
    version: Optional[str] = None,
    output_path: Optional[Path] = None,
    layout: Optional[AnnotationLayout] = None,
    trace_logger: Optional[logging.Logger] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """Annotate one listing; returns the number of unknown opcodes seen."""

    opcodes = select_opcode_table(version)
    lines = split_lines(read_listing(input_path, stream=stdin))
    symbols = parse_symbol_tables(lines)
    annotator = Annotator(opcodes, symbols, layout=layout, logger=trace_logger)

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with output_path.open("w", encoding=LISTING_ENCODING, errors=LISTING_ERRORS) as handle:
            _write_lines(annotator.annotate(lines), handle)
        LOGGER.info("Wrote annotated listing to %s", output_path)
    else:
        _write_stream(annotator.annotate(lines), stdout if stdout is not None else sys.stdout)

    if annotator.unknown_opcodes:
        LOGGER.info("%d instruction(s) used unknown opcodes", annotator.unknown_opcodes)
    return annotator.unknown_opcodes


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose, args.log_file)

    if args.column < 0:
        parser.error("--column must not be negative")

    if args.list_opcodes:
        try:
            opcodes = select_opcode_table(args.lua_version)
        except AnnotatorError as exc:
            LOGGER.error("%s", exc)
            return 1
        payload = {name: info.as_dict() for name, info in sorted(opcodes.items())}
        print(json.dumps(payload, indent=2))
        return 0

    trace_logger = None
    if args.trace is not None:
        trace_logger = configure_debug_file_logger(TRACE_LOGGER_NAME, args.trace)
    try:
        run(
            args.input,
            version=args.lua_version,
            output_path=args.output,
            layout=AnnotationLayout(column=args.column),
            trace_logger=trace_logger,
        )
    except AnnotatorError as exc:
        LOGGER.error("%s", exc)
        return 1
    except OSError as exc:
        LOGGER.error("Unable to write output: %s", exc)
        return 1
    finally:
        if trace_logger is not None:
            close_debug_logger(trace_logger)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
