"""I/O helpers for the listing annotator."""

from importlib import import_module
from typing import Any

__all__ = ["read_listing", "normalize_line_endings"]


def __getattr__(name: str) -> Any:  # pragma: no cover - trivial delegator
    if name in __all__:
        module = import_module(".loader", __name__)
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
