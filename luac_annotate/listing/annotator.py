"""Second pass over a listing: echo every line and annotate instructions.

For each instruction the annotator prints the opcode's semantic formula and,
when the function's symbol sections are known, the operands decorated with
the names they refer to::

    	1	[1]	LOADK    	0 -1	; "hi"
                            -- R(A) := Kst(Bx)
                            -> 0<?msg> -1<"hi">

``<?name>`` marks a register attributed to a local on the instruction that
initialises it, where the slot may still hold a temporary.  ``<^name>`` marks
an upvalue.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Mapping, Optional

from ..opcode_table import OpcodeInfo
from ..utils import split_lines
from .registers import resolve_register
from .symbols import FunctionSymbolTable, parse_symbol_tables
from .tokens import FunctionHeader, InstructionLine, classify_line

LOGGER = logging.getLogger(__name__)

RETURN_OPCODE = "RETURN"


@dataclass(frozen=True)
class AnnotationLayout:
    """Where and how annotation lines are rendered."""

    column: int = 24
    formula_marker: str = "-- "
    operand_marker: str = "-> "
    warning_marker: str = "!! "
    returns_nothing: str = "(returns nothing)"

    @property
    def padding(self) -> str:
        return " " * self.column

    def formula_lines(self, doc: str) -> List[str]:
        lines = doc.split("\n") if doc else [""]
        continuation = self.padding + " " * len(self.formula_marker)
        rendered = [f"{self.padding}{self.formula_marker}{lines[0]}".rstrip()]
        rendered.extend(f"{continuation}{line.strip()}" for line in lines[1:])
        return rendered

    def operand_line(self, text: str) -> str:
        return f"{self.padding}{self.operand_marker}{text}"

    def warning_line(self, text: str) -> str:
        return f"{self.padding}{self.warning_marker}{text}"


class Annotator:
    """Stateful per-line transducer driven over a complete listing.

    ``symbols`` must already hold every function's tables, since a function's
    instructions may be printed before or after its symbol sections.
    """

    def __init__(
        self,
        opcodes: Mapping[str, OpcodeInfo],
        symbols: Mapping[str, FunctionSymbolTable],
        *,
        layout: Optional[AnnotationLayout] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.opcodes = opcodes
        self.symbols = symbols
        self.layout = layout or AnnotationLayout()
        self.logger = logger or LOGGER
        self.current: Optional[FunctionSymbolTable] = None
        self.unknown_opcodes = 0

    def annotate_line(self, line: str) -> List[str]:
        """Return *line* followed by its annotation lines."""

        output = [line]
        token = classify_line(line)
        if isinstance(token, FunctionHeader):
            self._enter_function(token)
        elif isinstance(token, InstructionLine):
            output.extend(self.annotate_instruction(token))
        return output

    def annotate(self, lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            yield from self.annotate_line(line)

    def _enter_function(self, header: FunctionHeader) -> None:
        self.current = self.symbols.get(header.address)
        if self.current is None:
            self.logger.debug(
                "No symbol table for %s <%s> at %s", header.kind, header.source, header.address
            )
        else:
            self.logger.debug("Entering %s <%s> at %s", header.kind, header.source, header.address)

    def annotate_instruction(self, instruction: InstructionLine) -> List[str]:
        info = self.opcodes.get(instruction.opcode)
        if info is None:
            self.unknown_opcodes += 1
            # Module logger, not self.logger: the trace logger does not propagate.
            LOGGER.warning("Unknown opcode %s at pc %d", instruction.opcode, instruction.pc)
            return [self.layout.warning_line(f"unknown opcode {instruction.opcode}")]

        lines = self.layout.formula_lines(info.doc)
        if instruction.opcode == RETURN_OPCODE and instruction.operands[:2] == (0, 1):
            lines.append(self.layout.operand_line(self.layout.returns_nothing))
            return lines

        table = self.current
        if table is None or not instruction.operands:
            return lines

        rendered = [
            self.render_operand(info, position, value, instruction.pc, table)
            for position, value in enumerate(instruction.operands)
        ]
        lines.append(self.layout.operand_line(" ".join(rendered)))
        return lines

    def render_operand(
        self,
        info: OpcodeInfo,
        position: int,
        value: int,
        pc: int,
        table: FunctionSymbolTable,
    ) -> str:
        """Render one operand, appending the symbol it names when known."""

        kind = info.operand_type(position)
        if kind == "RK":
            kind = "Kst" if value < 0 else "R"

        if kind == "R":
            match = resolve_register(value, table.ordered_locals(), pc)
            if match.local is not None:
                self.logger.debug(
                    "pc %d: R(%d) -> %s%s",
                    pc,
                    value,
                    match.local.name,
                    " (uncertain)" if match.uncertain else "",
                )
                marker = "?" if match.uncertain else ""
                return f"{value}<{marker}{match.local.name}>"
        elif kind == "Kst":
            constant = table.constant(-value)
            if constant is not None:
                self.logger.debug("pc %d: Kst(%d) -> %s", pc, value, constant.name)
                return f"{value}<{constant.name}>"
        elif kind == "UpValue":
            upvalue = table.upvalue(value)
            if upvalue is not None:
                self.logger.debug("pc %d: UpValue[%d] -> %s", pc, value, upvalue.name)
                return f"{value}<^{upvalue.name}>"
        return str(value)


def annotate_lines(
    lines: List[str],
    opcodes: Mapping[str, OpcodeInfo],
    *,
    layout: Optional[AnnotationLayout] = None,
    logger: Optional[logging.Logger] = None,
) -> Iterator[str]:
    """Run both passes over *lines*, yielding output lines in order."""

    symbols = parse_symbol_tables(lines)
    annotator = Annotator(opcodes, symbols, layout=layout, logger=logger)
    yield from annotator.annotate(lines)


def annotate_listing(
    text: str,
    opcodes: Mapping[str, OpcodeInfo],
    *,
    layout: Optional[AnnotationLayout] = None,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Return *text* with annotation lines inserted after each instruction."""

    lines = split_lines(text)
    output = list(annotate_lines(lines, opcodes, layout=layout, logger=logger))
    if not output:
        return ""
    return "\n".join(output) + "\n"


__all__ = [
    "AnnotationLayout",
    "Annotator",
    "RETURN_OPCODE",
    "annotate_lines",
    "annotate_listing",
]
