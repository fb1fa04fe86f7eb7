"""
Static base gas tracer.

Walks bytecode in order (no jumps, no execution), running base_check() for
each instruction against a depth-only stack. Useful for inspecting what a
straight-line code fragment costs under a given cost table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from gasvote.vm.cost_table import OpcodeCostTable
from gasvote.vm.gas import GasAccumulator
from gasvote.vm.guard import base_check
from gasvote.vm.memory import MAX_STACK_DEPTH, DepthStack, EvmError
from gasvote.vm.opcodes import normalize_opcode, opcode_name, push_data_size


@dataclass
class TraceStep:
    pc: int
    opcode: int
    gas: int            # base gas charged for this step
    depth_before: int
    depth_after: int
    checked: bool = True

    @property
    def name(self) -> str:
        return opcode_name(self.opcode)


@dataclass
class TraceResult:
    gas: int = 0
    steps: list[TraceStep] = field(default_factory=list)
    error: Optional[EvmError] = None
    error_pc: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.error is None


def trace_base_gas(
    code: bytes,
    table: OpcodeCostTable,
    initial_depth: int = 0,
    stack_limit: int = MAX_STACK_DEPTH,
) -> TraceResult:
    """Total the base gas of `code`, stopping at the first stack error."""
    stack = DepthStack(initial_depth)
    gas = GasAccumulator()
    result = TraceResult()

    pc = 0
    while pc < len(code):
        opcode = code[pc]
        before_gas = gas.total
        depth_before = stack.depth
        try:
            checked = base_check(opcode, stack, gas, table, stack_limit)
        except EvmError as e:
            result.error = e
            result.error_pc = pc
            break

        if checked:
            r = table[normalize_opcode(opcode)]
            stack.adjust(r.stack_pop, r.stack_push)

        result.steps.append(TraceStep(
            pc=pc,
            opcode=opcode,
            gas=gas.total - before_gas,
            depth_before=depth_before,
            depth_after=stack.depth,
            checked=checked,
        ))
        # PUSH1..PUSH32: skip immediate bytes
        pc += 1 + push_data_size(opcode)

    result.gas = gas.total
    return result
