"""First pass over a listing: collect per-function symbol sections.

``luac -l -l`` prints, after each function's code, the sections::

    constants (2) for 0x8064e68:
    	1	"print"
    	2	"hello"
    locals (1) for 0x8064e68:
    	0	x	2	5
    upvalues (0) for 0x8064e68:

The parser is a two-state machine (outside a section / inside one).  A
non-indented header enters a section, indented rows inside a section are
entries, and any other non-indented line leaves it.  Tables are keyed by the
address token so sections for one function may appear in any order and
interleave with other functions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from .tokens import SectionEntry, parse_section_entry, parse_section_header, starts_with_whitespace

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolEntry:
    """A named constant or upvalue."""

    name: str


@dataclass(frozen=True)
class LocalInfo:
    """A local variable bound to a register over ``[start, end)``."""

    name: str
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"local {self.name!r} has start {self.start} after end {self.end}")


@dataclass
class FunctionSymbolTable:
    """Symbols of one function, all addressed by integer index."""

    address: str
    constants: Dict[int, SymbolEntry] = field(default_factory=dict)
    locals: Dict[int, LocalInfo] = field(default_factory=dict)
    upvalues: Dict[int, SymbolEntry] = field(default_factory=dict)
    sections: set[str] = field(default_factory=set)

    def constant(self, index: int) -> Optional[SymbolEntry]:
        return self.constants.get(index)

    def upvalue(self, index: int) -> Optional[SymbolEntry]:
        return self.upvalues.get(index)

    def ordered_locals(self) -> list[LocalInfo]:
        """Locals in declaration (slot) order."""

        return [self.locals[index] for index in sorted(self.locals)]

    def as_dict(self) -> Dict[str, object]:
        return {
            "address": self.address,
            "constants": {index: entry.name for index, entry in sorted(self.constants.items())},
            "locals": [
                {"name": local.name, "range": [local.start, local.end]}
                for local in self.ordered_locals()
            ],
            "upvalues": {index: entry.name for index, entry in sorted(self.upvalues.items())},
        }


SymbolTables = Dict[str, FunctionSymbolTable]


class SymbolTableParser:
    """Line-oriented state machine building :class:`FunctionSymbolTable` objects."""

    def __init__(self) -> None:
        self.tables: SymbolTables = {}
        self._section: Optional[str] = None
        self._table: Optional[FunctionSymbolTable] = None

    @property
    def in_section(self) -> bool:
        return self._section is not None

    def feed(self, line: str) -> None:
        """Advance the state machine by one line."""

        if not starts_with_whitespace(line):
            header = parse_section_header(line)
            if header is None:
                self._section = None
                self._table = None
                return
            table = self.tables.get(header.address)
            if table is None:
                table = FunctionSymbolTable(address=header.address)
                self.tables[header.address] = table
            table.sections.add(header.kind)
            self._section = header.kind
            self._table = table
            return

        if self._section is None or self._table is None:
            return
        entry = parse_section_entry(line)
        if entry is None:
            LOGGER.debug("Ignoring malformed %s row: %r", self._section, line)
            return
        self._store(self._table, self._section, entry)

    def _store(self, table: FunctionSymbolTable, section: str, entry: SectionEntry) -> None:
        if section == "constants":
            table.constants[entry.index] = SymbolEntry(entry.name)
        elif section == "upvalues":
            table.upvalues[entry.index] = SymbolEntry(entry.name)
        elif section == "locals":
            if len(entry.numbers) < 2:
                LOGGER.debug("Local %s at %d has no live range", entry.name, entry.index)
                return
            start, end = entry.numbers[0], entry.numbers[1]
            if start > end:
                LOGGER.warning(
                    "Local %s at %d has inverted live range [%d, %d]",
                    entry.name,
                    entry.index,
                    start,
                    end,
                )
                return
            table.locals[entry.index] = LocalInfo(entry.name, start, end)
        else:
            LOGGER.debug("Skipping entry of unknown section %s", section)

    def feed_lines(self, lines: Iterable[str]) -> SymbolTables:
        for line in lines:
            self.feed(line)
        return self.tables


def parse_symbol_tables(lines: Iterable[str]) -> Mapping[str, FunctionSymbolTable]:
    """Run a complete first pass over *lines*."""

    tables = SymbolTableParser().feed_lines(lines)
    LOGGER.debug("Collected symbol tables for %d function(s)", len(tables))
    return tables


__all__ = [
    "FunctionSymbolTable",
    "LocalInfo",
    "SymbolEntry",
    "SymbolTableParser",
    "SymbolTables",
    "parse_symbol_tables",
]
