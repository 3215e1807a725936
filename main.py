#!/usr/bin/env python3
"""Compat shim that forwards to :mod:`luac_annotate.cli`.

Lets a checkout be used without installing: ``python main.py listing.txt``
behaves like the ``luac-annotate`` console script.
"""

from __future__ import annotations

import sys

from luac_annotate import cli as _cli


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``python main.py``.

    Parameters
    ----------
    argv:
        Optional argument vector.  When ``None`` the wrapper forwards the
        current ``sys.argv[1:]`` to :func:`luac_annotate.cli.main`.
    """

    return _cli.main(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":  # pragma: no cover - thin CLI shim
    raise SystemExit(main())
