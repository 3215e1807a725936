"""Parse ``lopcodes.h`` style opcode descriptions into lookup tables.

Each Lua release documents its instruction set inside the ``OpCode`` enum of
``lopcodes.h``::

    OP_LOADK,/*	A Bx	R(A) := Kst(Bx)					*/

The comment carries the operand signature (``A Bx``) followed by the semantic
formula.  Operand types are recovered from the formula itself: every
``Type(X)`` or ``Type[X]`` fragment whose argument is exactly an operand name
tags that operand's slot with ``Type``.  Slots are assigned by operand name,
never by the order the names appear in the signature.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

LOGGER = logging.getLogger(__name__)

OPERAND_SLOT_COUNT = 3

OPERAND_SLOTS: Mapping[str, int] = {
    "A": 0,
    "Ax": 0,
    "B": 1,
    "Bx": 1,
    "sBx": 1,
    "C": 2,
}

OperandTypes = Tuple[Optional[str], Optional[str], Optional[str]]

_EMPTY_TYPES: OperandTypes = (None, None, None)

_ENTRY_PATTERN = re.compile(
    r"^[ \t]*OP_(?P<name>\w+)[ \t]*,?[ \t]*(?:/\*(?P<body>.*?)\*/)?",
    re.MULTILINE | re.DOTALL,
)
_SIGNATURE_PATTERN = re.compile(
    r"^(?P<signature>(?:(?:sBx|Ax|Bx|A|B|C)(?![\w(\[])[ \t]*)*)(?P<doc>.*)$",
    re.DOTALL,
)
_OPERAND_TYPE_PATTERN = re.compile(
    r"(?P<type>[A-Za-z_]\w*)(?:\((?P<paren>sBx|Ax|Bx|A|B|C)\)|\[(?P<bracket>sBx|Ax|Bx|A|B|C)\])"
)
_LINE_BREAK_PATTERN = re.compile(r"[ \t]*\n[ \t]*")
_SPACE_PATTERN = re.compile(r"[ \t]+")


@dataclass(frozen=True)
class OpcodeInfo:
    """Signature, semantic formula and operand types of one opcode."""

    name: str
    signature: Tuple[str, ...]
    doc: str
    operand_types: OperandTypes = _EMPTY_TYPES

    def slot_for_position(self, position: int) -> int:
        """Return the operand slot of the ``position``-th printed operand.

        ``luac`` omits unused operands, so the printed order follows the
        signature.  Positions beyond the signature fall back to themselves.
        """

        if position < len(self.signature):
            slot = OPERAND_SLOTS.get(self.signature[position])
            if slot is not None:
                return slot
        return position

    def operand_type(self, position: int) -> Optional[str]:
        slot = self.slot_for_position(position)
        if 0 <= slot < OPERAND_SLOT_COUNT:
            return self.operand_types[slot]
        return None

    def as_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "signature": list(self.signature),
            "doc": self.doc,
            "operand_types": list(self.operand_types),
        }


OpcodeTable = Dict[str, OpcodeInfo]


def operand_slot(operand: str) -> Optional[int]:
    """Return the zero-based slot for an operand name such as ``Bx``."""

    return OPERAND_SLOTS.get(operand)


def normalize_doc(doc: str, indent: str = "") -> str:
    """Canonicalise whitespace in a semantic formula.

    Runs of spaces and tabs collapse to one space, every line break (with the
    whitespace around it) becomes a single newline followed by *indent*, and
    the result is trimmed.
    """

    text = doc.strip()
    if not text:
        return ""
    lines = [_SPACE_PATTERN.sub(" ", line) for line in _LINE_BREAK_PATTERN.split(text)]
    return ("\n" + indent).join(line for line in lines if line)


def parse_operand_types(doc: str) -> OperandTypes:
    """Scan *doc* for ``Type(X)``/``Type[X]`` fragments.

    Later matches for the same slot overwrite earlier ones.
    """

    slots: List[Optional[str]] = [None] * OPERAND_SLOT_COUNT
    for match in _OPERAND_TYPE_PATTERN.finditer(doc):
        operand = match.group("paren") or match.group("bracket")
        slot = OPERAND_SLOTS[operand]
        slots[slot] = match.group("type")
    return (slots[0], slots[1], slots[2])


def _split_body(body: str) -> Tuple[Tuple[str, ...], str]:
    match = _SIGNATURE_PATTERN.match(body.strip())
    if match is None:  # pragma: no cover - the pattern accepts any text
        return (), body
    signature = tuple(match.group("signature").split())
    return signature, match.group("doc")


def parse_opcode_definitions(text: str, indent: str = "") -> OpcodeTable:
    """Return an :data:`OpcodeTable` built from the ``OP_*`` entries in *text*.

    Unrelated text between entries is ignored.  Entries without a comment, or
    whose comment has no formula, still produce an :class:`OpcodeInfo` with an
    empty doc and no operand types.
    """

    table: OpcodeTable = {}
    for match in _ENTRY_PATTERN.finditer(text):
        name = match.group("name")
        body = match.group("body")
        if body is None:
            LOGGER.debug("Opcode %s has no description", name)
            table[name] = OpcodeInfo(name=name, signature=(), doc="")
            continue
        signature, raw_doc = _split_body(body)
        doc = normalize_doc(raw_doc, indent)
        operand_types = parse_operand_types(doc) if doc else _EMPTY_TYPES
        table[name] = OpcodeInfo(
            name=name,
            signature=signature,
            doc=doc,
            operand_types=operand_types,
        )
    LOGGER.debug("Parsed %d opcode definitions", len(table))
    return table


def merge_opcode_tables(tables: Sequence[Mapping[str, OpcodeInfo]]) -> OpcodeTable:
    """Union *tables* in order; later tables override earlier ones by name."""

    merged: OpcodeTable = {}
    for table in tables:
        merged.update(table)
    return merged


__all__ = [
    "OPERAND_SLOTS",
    "OPERAND_SLOT_COUNT",
    "OpcodeInfo",
    "OpcodeTable",
    "merge_opcode_tables",
    "normalize_doc",
    "operand_slot",
    "parse_opcode_definitions",
    "parse_operand_types",
]
