"""Bundled Lua opcode definitions and version selection.

``config.json`` beside this module lists the supported versions in merge
order, the CLI flag selecting each one and the ``lopcodes.h`` excerpt it is
read from.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..exceptions import OpcodeDefinitionError
from ..opcode_table import OpcodeTable, merge_opcode_tables, parse_opcode_definitions

LOGGER = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).with_name("config.json")


def _load_config(path: Path) -> Dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise OpcodeDefinitionError(f"cannot read version configuration {path}: {exc}") from exc


_DATA = _load_config(_CONFIG_PATH)
_VERSIONS: Dict[str, Dict[str, str]] = _DATA.get("versions", {})
_ORDER: List[str] = list(_DATA.get("order", sorted(_VERSIONS)))


def available_versions() -> List[str]:
    """Return the bundled Lua versions, oldest first."""

    return list(_ORDER)


def version_flag(version: str) -> str:
    """Return the CLI flag selecting *version*."""

    try:
        return _VERSIONS[version]["flag"]
    except KeyError as exc:
        raise OpcodeDefinitionError(f"unknown Lua version {version!r}") from exc


def resource_path(version: str) -> Path:
    """Return the location of the ``lopcodes.h`` excerpt for *version*."""

    try:
        resource = _VERSIONS[version]["resource"]
    except KeyError as exc:
        raise OpcodeDefinitionError(f"unknown Lua version {version!r}") from exc
    return Path(__file__).parent / resource


def load_opcode_table(version: str, *, base_dir: Optional[Path] = None) -> OpcodeTable:
    """Read and parse the bundled opcode description for *version*.

    ``base_dir`` replaces the package directory as the resource root; it is
    mostly useful in tests.
    """

    path = resource_path(version)
    if base_dir is not None:
        path = base_dir / _VERSIONS[version]["resource"]
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OpcodeDefinitionError(
            f"cannot read opcode definitions for Lua {version} from {path}: {exc}"
        ) from exc
    table = parse_opcode_definitions(text)
    if not table:
        LOGGER.warning("No opcode definitions found in %s", path)
    LOGGER.debug("Loaded %d opcodes for Lua %s", len(table), version)
    return table


def load_opcode_tables(
    versions: Optional[Iterable[str]] = None, *, base_dir: Optional[Path] = None
) -> Dict[str, OpcodeTable]:
    """Load every bundled table (or just *versions*) keyed by version."""

    selected = available_versions() if versions is None else list(versions)
    return {version: load_opcode_table(version, base_dir=base_dir) for version in selected}


def merged_opcode_table(tables: Mapping[str, OpcodeTable]) -> OpcodeTable:
    """Merge *tables* oldest to newest so newer definitions win."""

    ordered = [tables[version] for version in _ORDER if version in tables]
    return merge_opcode_tables(ordered)


def select_opcode_table(
    version: Optional[str] = None, *, base_dir: Optional[Path] = None
) -> OpcodeTable:
    """Return the table for *version*, or the merged table when ``None``.

    All four resources are loaded either way, so a missing resource is
    reported at startup regardless of the selection.
    """

    tables = load_opcode_tables(base_dir=base_dir)
    if version is None:
        return merged_opcode_table(tables)
    if version not in tables:
        raise OpcodeDefinitionError(f"unknown Lua version {version!r}")
    return tables[version]


__all__ = [
    "available_versions",
    "load_opcode_table",
    "load_opcode_tables",
    "merged_opcode_table",
    "resource_path",
    "select_opcode_table",
    "version_flag",
]
