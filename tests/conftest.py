"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"
FIXTURES = TESTS / "fixtures"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)
else:
    idx = sys.path.index(root_str)
    if idx != 0:
        sys.path.insert(0, sys.path.pop(idx))

# Import the project package eagerly so subsequent imports reuse it
importlib.import_module("luac_annotate")


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def hello51_path() -> Path:
    """``luac5.1 -l -l`` listing of a closure capturing a local."""

    return FIXTURES / "hello51.lst"


@pytest.fixture
def hello51_text(hello51_path: Path) -> str:
    return hello51_path.read_text(encoding="utf-8")


@pytest.fixture
def settabup52_path() -> Path:
    """``luac5.2 -l -l`` listing assigning a local table to a global."""

    return FIXTURES / "settabup52.lst"


@pytest.fixture
def settabup52_text(settabup52_path: Path) -> str:
    return settabup52_path.read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Undo handler and level changes made by the CLI's logging setup."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
