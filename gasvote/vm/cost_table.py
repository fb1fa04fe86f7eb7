"""
Opcode cost table: the per-instruction requirements base_check() consults.

An OpcodeCostTable is derived from the fixed opcode shapes and a
GasClassSchedule and is never modified after construction. Retargeting the
schedule produces a new table which is published through ActiveCostTable by
swapping a single reference; readers holding the previous table are unaffected.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Optional

from gasvote.vm.gas import GAS_DUP, GAS_RETURN
from gasvote.vm.opcodes import OPCODE_GAS_CLASS, OPCODE_SHAPES, Op, opcode_name
from gasvote.vm.schedule import (
    GENESIS_GAS_SCHEDULE,
    GasClassSchedule,
    check_gas_pricing,
)

logger = logging.getLogger(__name__)

# Fixed-cost opcodes (class None in OPCODE_GAS_CLASS)
FIXED_GAS: Mapping[int, int] = MappingProxyType({
    Op.RETURN: GAS_RETURN,
    Op.DUP1: GAS_DUP,
})


@dataclass(frozen=True)
class OpcodeRequirement:
    stack_pop: int
    gas: int
    stack_push: int


class OpcodeCostTable(Mapping):
    """Immutable mapping of canonical opcode -> OpcodeRequirement."""

    __slots__ = ("_requirements", "_schedule")

    def __init__(self, requirements: Mapping[int, OpcodeRequirement], schedule: GasClassSchedule):
        self._requirements = MappingProxyType(dict(requirements))
        self._schedule = schedule

    @classmethod
    def from_schedule(cls, schedule: GasClassSchedule) -> OpcodeCostTable:
        """Combine the opcode shapes with `schedule` via the opcode -> class mapping."""
        requirements: dict[int, OpcodeRequirement] = {}
        for op, (stack_pop, stack_push) in OPCODE_SHAPES.items():
            gas_class = OPCODE_GAS_CLASS[op]
            gas = FIXED_GAS[op] if gas_class is None else schedule[gas_class]
            requirements[op] = OpcodeRequirement(stack_pop, gas, stack_push)
        return cls(requirements, schedule)

    @property
    def schedule(self) -> GasClassSchedule:
        return self._schedule

    def fingerprint(self) -> bytes:
        """Identifies the schedule this table was derived from."""
        return self._schedule.fingerprint()

    def __getitem__(self, opcode: int) -> OpcodeRequirement:
        return self._requirements[opcode]

    def __iter__(self) -> Iterator[int]:
        return iter(self._requirements)

    def __len__(self) -> int:
        return len(self._requirements)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OpcodeCostTable):
            return self._requirements == other._requirements
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"OpcodeCostTable({len(self)} opcodes, schedule=0x{self.fingerprint().hex()[:16]})"

    def describe(self) -> list[tuple[str, int, int, int]]:
        """(name, stack pop, gas, stack push) rows sorted by opcode."""
        return [
            (opcode_name(op), r.stack_pop, r.gas, r.stack_push)
            for op, r in sorted(self._requirements.items())
        ]


def derive_cost_table(schedule: GasClassSchedule) -> OpcodeCostTable:
    return OpcodeCostTable.from_schedule(schedule)


def update_gas_pricing(proposed: GasClassSchedule, active: GasClassSchedule) -> OpcodeCostTable:
    """Validate `proposed` against `active` and derive the table it yields.

    Raises GasScheduleError without side effects if the vote is rejected.
    """
    check_gas_pricing(proposed, active)
    return derive_cost_table(proposed)


GENESIS_COST_TABLE = derive_cost_table(GENESIS_GAS_SCHEDULE)


class ActiveCostTable:
    """Holds the cost table currently in force.

    current() is lock-free: a published table is immutable, so readers only
    need the reference. Writers serialize on a lock so each swap is checked
    against the table it replaces.
    """

    def __init__(self, table: Optional[OpcodeCostTable] = None) -> None:
        self._table = table if table is not None else GENESIS_COST_TABLE
        self._lock = threading.Lock()

    def current(self) -> OpcodeCostTable:
        return self._table

    @property
    def schedule(self) -> GasClassSchedule:
        return self._table.schedule

    def swap(self, table: OpcodeCostTable) -> OpcodeCostTable:
        """Publish `table` and return the one it replaced."""
        with self._lock:
            previous = self._table
            self._table = table
        return previous

    def apply(self, proposed: GasClassSchedule) -> OpcodeCostTable:
        """Validate `proposed` against the active schedule and publish its table."""
        with self._lock:
            table = update_gas_pricing(proposed, self._table.schedule)
            self._table = table
        logger.debug("Published cost table %r", table)
        return table
