"""Read listings from a file or standard input."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from ..exceptions import ListingInputError

LOGGER = logging.getLogger(__name__)

LISTING_ENCODING = "utf-8"
# ``luac`` prints string constants as raw bytes; undecodable bytes become
# lone surrogates and are restored byte for byte when written back.
LISTING_ERRORS = "surrogateescape"


def normalize_line_endings(text: str) -> str:
    """Normalize all line endings to Unix newlines.

    Args:
        text: The input text with arbitrary line endings.

    Returns:
        The text with all CRLF/CR sequences replaced by LF.
    """

    # First collapse CRLF to LF, then standalone CR.
    return text.replace("\r\n", "\n").replace("\r", "\n")


def decode_listing(raw: bytes) -> str:
    return raw.decode(LISTING_ENCODING, errors=LISTING_ERRORS)


def read_listing(path: Optional[Path] = None, *, stream: Optional[TextIO] = None) -> str:
    """Return the whole listing from *path*, or from *stream* (stdin by default).

    Binary-backed streams are read through their byte buffer and decoded the
    same way as files, so a listing is accepted identically whether it is
    piped in or named on the command line.
    """

    if path is not None:
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise ListingInputError(f"cannot read {path}: {exc}") from exc
        LOGGER.debug("Read %d bytes from %s", len(raw), path)
        text = decode_listing(raw)
    else:
        source = stream if stream is not None else sys.stdin
        buffer = getattr(source, "buffer", None)
        if buffer is not None:
            raw = buffer.read()
            LOGGER.debug("Read %d bytes from stdin", len(raw))
            text = decode_listing(raw)
        else:
            text = source.read()
            LOGGER.debug("Read %d characters from stdin", len(text))
    return normalize_line_endings(text)


__all__ = [
    "LISTING_ENCODING",
    "LISTING_ERRORS",
    "decode_listing",
    "normalize_line_endings",
    "read_listing",
]
