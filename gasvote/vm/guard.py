"""
Per-instruction stack and base gas check.

base_check() runs before an instruction executes: it validates stack depth
against the instruction's requirement and charges its base gas. It never
touches the stack contents.
"""

from __future__ import annotations

from typing import Protocol

from gasvote.vm.cost_table import OpcodeCostTable
from gasvote.vm.gas import GasAccumulator
from gasvote.vm.memory import MAX_STACK_DEPTH, StackOverflow
from gasvote.vm.opcodes import normalize_opcode


class StackView(Protocol):
    def require(self, n: int) -> None: ...

    def __len__(self) -> int: ...


def base_check(
    opcode: int,
    stack: StackView,
    gas: GasAccumulator,
    table: OpcodeCostTable,
    stack_limit: int = MAX_STACK_DEPTH,
) -> bool:
    """Check stack bounds for `opcode` and charge its base gas into `gas`.

    Returns False when the opcode has no cost table entry; such opcodes are
    neither checked nor charged here. Raises StackUnderflow / StackOverflow
    without charging when a bound is violated. `table` is the snapshot
    in force, normally `GasScheduleManager.current_table()`.
    """
    # PUSH and DUP variants share one entry
    r = table.get(normalize_opcode(opcode))
    if r is None:
        return False

    stack.require(r.stack_pop)

    if r.stack_push > 0:
        result_depth = len(stack) - r.stack_pop + r.stack_push
        if result_depth > stack_limit:
            raise StackOverflow(stack_limit, result_depth)

    gas.charge(r.gas)
    return True
