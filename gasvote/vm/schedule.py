"""
Voteable gas schedule.

A GasClassSchedule holds one base fee per gas class. Every epoch a new schedule
may be proposed; check_gas_pricing() bounds how far it may move from the active
one:

  - never below the protocol floor for the class
  - never below half of the active value (integer division)
  - never above twice the active value

Schedules serialize to JSON (class name -> value) and to RLP (a fixed-order
list of 16 integers), and are identified by the keccak-256 of the RLP form.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Iterator, Union

import rlp
from eth_utils import encode_hex, keccak, to_int
from rlp.exceptions import RLPException
from rlp.sedes import List, big_endian_int

from gasvote.vm.memory import UINT256_MAX
from gasvote.vm.gas import (
    MIN_GAS_QUICK_STEP,
    MIN_GAS_FASTEST_STEP,
    MIN_GAS_FAST_STEP,
    MIN_GAS_MID_STEP,
    MIN_GAS_SLOW_STEP,
    MIN_GAS_EXT_STEP,
    MIN_GAS_SLOAD,
    MIN_GAS_SSTORE,
    MIN_GAS_SHA3,
    MIN_GAS_CREATE,
    MIN_GAS_CALL,
    MIN_GAS_JUMPDEST,
    MIN_GAS_SUICIDE,
    MIN_GAS_BALANCE,
    MIN_GAS_EXTCODESIZE,
    MIN_GAS_EXTCODECOPY,
)


# ---------------------------------------------------------------------------
# Gas classes
# ---------------------------------------------------------------------------

class GasClass(Enum):
    """Voteable gas classes. Values are the names used in JSON documents."""

    # Step classes (affect multiple opcodes)
    QUICK_STEP = "quickStep"
    FASTEST_STEP = "fastestStep"
    FAST_STEP = "fastStep"
    MID_STEP = "midStep"
    SLOW_STEP = "slowStep"
    EXT_STEP = "extStep"

    # Separate opcodes
    SLOAD = "sload"
    SSTORE = "sstore"
    SHA3 = "sha3"
    CREATE = "create"
    CALL = "call"
    JUMPDEST = "jumpdest"
    SUICIDE = "suicide"
    BALANCE = "balance"
    EXTCODESIZE = "extcodesize"
    EXTCODECOPY = "extcodecopy"

    @property
    def field_name(self) -> str:
        return self.name.lower()


class BoundSource(Enum):
    FLOOR = "floor"
    BASELINE = "baseline"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class GasScheduleError(Exception):
    """Base class for rejected or malformed gas schedules."""
    pass


class InvalidGasValue(GasScheduleError, ValueError):
    """Schedule value is not a uint256, or a schedule document is malformed."""
    pass


class GasVoteTooLow(GasScheduleError):
    def __init__(self, gas_class: GasClass, value: int, bound: int, source: BoundSource):
        self.gas_class = gas_class
        self.value = value
        self.bound = bound
        self.source = source
        super().__init__(
            f"Gas vote too low for {gas_class.value}: {value} < {bound} ({source.value})"
        )


class GasVoteTooHigh(GasScheduleError):
    source = BoundSource.BASELINE

    def __init__(self, gas_class: GasClass, value: int, bound: int):
        self.gas_class = gas_class
        self.value = value
        self.bound = bound
        super().__init__(
            f"Gas vote too high for {gas_class.value}: {value} > {bound}"
        )


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------

_SCHEDULE_SEDES = List([big_endian_int] * len(GasClass))


@dataclass(frozen=True)
class GasClassSchedule:
    quick_step: int
    fastest_step: int
    fast_step: int
    mid_step: int
    slow_step: int
    ext_step: int
    sload: int
    sstore: int
    sha3: int
    create: int
    call: int
    jumpdest: int
    suicide: int
    balance: int
    extcodesize: int
    extcodecopy: int

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidGasValue(f"{f.name}: expected int, got {type(value).__name__}")
            if value < 0 or value > UINT256_MAX:
                raise InvalidGasValue(f"{f.name}: {value} is not a uint256")

    def __getitem__(self, gas_class: GasClass) -> int:
        return getattr(self, gas_class.field_name)

    def items(self) -> Iterator[tuple[GasClass, int]]:
        for gas_class in GasClass:
            yield gas_class, self[gas_class]

    def with_values(self, values: dict[GasClass, int]) -> GasClassSchedule:
        """Return a copy with the given classes replaced."""
        return replace(self, **{c.field_name: v for c, v in values.items()})

    # -- JSON --

    def to_json(self) -> dict[str, int]:
        return {gas_class.value: value for gas_class, value in self.items()}

    @classmethod
    def from_json(
        cls,
        data: dict[str, Union[int, str]],
        defaults: GasClassSchedule | None = None,
    ) -> GasClassSchedule:
        """Parse a class-name -> value mapping. Values may be ints or hex/decimal strings.

        With `defaults`, classes missing from `data` keep their default value;
        without, every class must be present.
        """
        names = {gas_class.value: gas_class for gas_class in GasClass}
        unknown = set(data) - set(names)
        if unknown:
            raise InvalidGasValue(f"Unknown gas classes: {', '.join(sorted(unknown))}")

        values: dict[GasClass, int] = {}
        for name, gas_class in names.items():
            if name in data:
                values[gas_class] = parse_gas_value(data[name])
            elif defaults is None:
                raise InvalidGasValue(f"Missing gas class: {name}")

        if defaults is None:
            return cls(**{c.field_name: v for c, v in values.items()})
        return defaults.with_values(values)

    # -- RLP --

    def encode_rlp(self) -> bytes:
        return rlp.encode([value for _, value in self.items()], sedes=_SCHEDULE_SEDES)

    @classmethod
    def decode_rlp(cls, data: bytes) -> GasClassSchedule:
        try:
            values = rlp.decode(data, sedes=_SCHEDULE_SEDES)
        except RLPException as e:
            raise InvalidGasValue(f"Malformed RLP gas schedule: {e}") from e
        return cls(**{c.field_name: v for c, v in zip(GasClass, values)})

    def fingerprint(self) -> bytes:
        """keccak-256 of the RLP encoding."""
        return keccak(self.encode_rlp())

    def __str__(self) -> str:
        body = ", ".join(f"{c.value}={v}" for c, v in self.items())
        return f"GasClassSchedule({body}) {encode_hex(self.fingerprint())[:18]}"


def parse_gas_value(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidGasValue(f"Expected integer gas value, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            if value.lower().startswith("0x"):
                return to_int(hexstr=value)
            return int(value, 10)
        except ValueError as e:
            raise InvalidGasValue(f"Invalid gas value {value!r}") from e
    raise InvalidGasValue(f"Expected integer gas value, got {type(value).__name__}")


# Protocol floor per class; never changes.
GAS_CLASS_FLOOR = GasClassSchedule(
    quick_step=MIN_GAS_QUICK_STEP,
    fastest_step=MIN_GAS_FASTEST_STEP,
    fast_step=MIN_GAS_FAST_STEP,
    mid_step=MIN_GAS_MID_STEP,
    slow_step=MIN_GAS_SLOW_STEP,
    ext_step=MIN_GAS_EXT_STEP,
    sload=MIN_GAS_SLOAD,
    sstore=MIN_GAS_SSTORE,
    sha3=MIN_GAS_SHA3,
    create=MIN_GAS_CREATE,
    call=MIN_GAS_CALL,
    jumpdest=MIN_GAS_JUMPDEST,
    suicide=MIN_GAS_SUICIDE,
    balance=MIN_GAS_BALANCE,
    extcodesize=MIN_GAS_EXTCODESIZE,
    extcodecopy=MIN_GAS_EXTCODECOPY,
)

# Genesis starts every class at its floor.
GENESIS_GAS_SCHEDULE = GAS_CLASS_FLOOR


# ---------------------------------------------------------------------------
# Vote validation
# ---------------------------------------------------------------------------

def check_gas_floor(schedule: GasClassSchedule) -> None:
    """Raise GasVoteTooLow for the first class below its protocol floor."""
    for gas_class, value in schedule.items():
        floor = GAS_CLASS_FLOOR[gas_class]
        if value < floor:
            raise GasVoteTooLow(gas_class, value, floor, BoundSource.FLOOR)


def check_gas_pricing(proposed: GasClassSchedule, active: GasClassSchedule) -> None:
    """Validate a proposed schedule against the floors and the active schedule.

    Classes are checked in declaration order and the first violated bound is
    raised. A schedule either passes as a whole or is rejected as a whole.
    Once an active value is 1 or 0 its lower bound is 0, so only the floor
    keeps it from dropping further.
    """
    for gas_class, value in proposed.items():
        floor = GAS_CLASS_FLOOR[gas_class]
        if value < floor:
            raise GasVoteTooLow(gas_class, value, floor, BoundSource.FLOOR)

        baseline = active[gas_class]
        lower = baseline // 2
        if value < lower:
            raise GasVoteTooLow(gas_class, value, lower, BoundSource.BASELINE)

        upper = baseline * 2
        if value > upper:
            raise GasVoteTooHigh(gas_class, value, upper)
