"""Line tokenizer for ``luac -l -l`` listings.

Both passes over a listing share this classifier so they agree on what a
function header, a symbol section or an instruction looks like::

    main <hello.lua:0,0> (4 instructions, 16 bytes at 0x8064e68)
    	1	[1]	LOADK    	0 -1	; "hello"
    constants (1) for 0x8064e68:
    	1	"hello"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

_FUNCTION_HEADER = re.compile(
    r"^(?P<kind>main|function)\s+<(?P<source>[^>]*)>\s+\((?P<summary>.*?)\bat\s+(?P<address>\S+?)\)\s*$"
)
_SECTION_HEADER = re.compile(
    r"^(?P<kind>[A-Za-z_]\w*)\s+\((?P<count>\d+)\)\s+for\s+(?P<address>\S+?):\s*$"
)
_SECTION_ENTRY = re.compile(
    r"^\s+(?P<index>-?\d+)\s+(?P<name>\S.*?)(?P<numbers>(?:\s+-?\d+)*)\s*$"
)
_INSTRUCTION = re.compile(
    r"^\s+(?P<pc>\d+)\s+\[(?P<line>-|\d+)\]\s+(?P<opcode>[A-Za-z_]\w*)(?P<operands>[^;]*?)\s*(?:;(?P<comment>.*))?$"
)
_INTEGER = re.compile(r"-?\d+")


@dataclass(frozen=True)
class FunctionHeader:
    kind: str
    source: str
    address: str


@dataclass(frozen=True)
class SectionHeader:
    kind: str
    count: int
    address: str


@dataclass(frozen=True)
class SectionEntry:
    index: int
    name: str
    numbers: Tuple[int, ...] = ()


@dataclass(frozen=True)
class InstructionLine:
    pc: int
    source_line: Optional[int]
    opcode: str
    operands: Tuple[int, ...]
    comment: Optional[str] = None


Token = Union[FunctionHeader, SectionHeader, SectionEntry, InstructionLine]


def starts_with_whitespace(line: str) -> bool:
    return bool(line) and line[0].isspace()


def parse_function_header(line: str) -> Optional[FunctionHeader]:
    match = _FUNCTION_HEADER.match(line)
    if match is None:
        return None
    return FunctionHeader(
        kind=match.group("kind"),
        source=match.group("source"),
        address=match.group("address"),
    )


def parse_section_header(line: str) -> Optional[SectionHeader]:
    """Match ``<kind> (<count>) for <address>:`` at the start of *line*."""

    if not line or line[0].isspace():
        return None
    match = _SECTION_HEADER.match(line)
    if match is None:
        return None
    return SectionHeader(
        kind=match.group("kind"),
        count=int(match.group("count")),
        address=match.group("address"),
    )


def parse_section_entry(line: str) -> Optional[SectionEntry]:
    """Split an indented symbol row into index, name and trailing integers."""

    match = _SECTION_ENTRY.match(line)
    if match is None:
        return None
    numbers = tuple(int(value) for value in _INTEGER.findall(match.group("numbers")))
    return SectionEntry(
        index=int(match.group("index")),
        name=match.group("name"),
        numbers=numbers,
    )


def parse_instruction(line: str) -> Optional[InstructionLine]:
    match = _INSTRUCTION.match(line)
    if match is None:
        return None
    source_line = match.group("line")
    return InstructionLine(
        pc=int(match.group("pc")),
        source_line=None if source_line == "-" else int(source_line),
        opcode=match.group("opcode"),
        operands=tuple(int(value) for value in _INTEGER.findall(match.group("operands"))),
        comment=match.group("comment"),
    )


def classify_line(line: str) -> Optional[Token]:
    """Return the token for *line*, or ``None`` for anything else.

    Indented lines are tried as instructions first; symbol rows are only
    meaningful inside a section, which the caller tracks.
    """

    if starts_with_whitespace(line):
        return parse_instruction(line) or parse_section_entry(line)
    return parse_function_header(line) or parse_section_header(line)


__all__ = [
    "FunctionHeader",
    "InstructionLine",
    "SectionEntry",
    "SectionHeader",
    "Token",
    "classify_line",
    "parse_function_header",
    "parse_instruction",
    "parse_section_entry",
    "parse_section_header",
    "starts_with_whitespace",
]
