"""Map a register number to the local variable living in it at a given pc."""

from __future__ import annotations

from typing import Mapping, NamedTuple, Optional, Sequence, Union

from .symbols import LocalInfo


class RegisterMatch(NamedTuple):
    local: Optional[LocalInfo]
    uncertain: bool


NO_MATCH = RegisterMatch(None, False)

LocalsArg = Union[Sequence[LocalInfo], Mapping[int, LocalInfo]]


def in_scope(local: LocalInfo, pc: int) -> bool:
    """Return whether *local* is live at *pc*.

    Scope opens one instruction before the recorded start so the instruction
    initialising the variable is attributed to it, and closes before ``end``.
    """

    return local.start - 1 <= pc < local.end


def resolve_register(register: int, locals: LocalsArg, pc: int) -> RegisterMatch:
    """Return the local bound to *register* at *pc*.

    Only locals in scope at *pc* occupy register positions, so a slot reused by
    locals with disjoint live ranges resolves to whichever one is live.  The
    match is flagged uncertain on the early-attribution instruction, where the
    register may still hold a temporary.
    """

    if isinstance(locals, Mapping):
        ordered = [locals[index] for index in sorted(locals)]
    else:
        ordered = list(locals)
    if register < 0 or register >= len(ordered):
        return NO_MATCH

    position = 0
    for local in ordered:
        if not in_scope(local, pc):
            continue
        if position == register:
            return RegisterMatch(local, pc == local.start - 1)
        position += 1
    return NO_MATCH


__all__ = ["NO_MATCH", "RegisterMatch", "in_scope", "resolve_register"]
