"""
EVM gas primitives.

Covers the protocol gas floors, word-size conversion and the caller-owned gas
accumulator that base costs are charged into.
"""

from __future__ import annotations

from gasvote.vm.memory import UINT256_MAX, Uint256Overflow

# ---------------------------------------------------------------------------
# Minimum gas per voteable class
# ---------------------------------------------------------------------------

# Step classes (shared by several opcodes)
MIN_GAS_QUICK_STEP = 2
MIN_GAS_FASTEST_STEP = 3
MIN_GAS_FAST_STEP = 5
MIN_GAS_MID_STEP = 8
MIN_GAS_SLOW_STEP = 10
MIN_GAS_EXT_STEP = 20

# Single-opcode classes
MIN_GAS_SLOAD = 500
MIN_GAS_SSTORE = 500
MIN_GAS_SHA3 = 30
MIN_GAS_CREATE = 500
MIN_GAS_CALL = 500
MIN_GAS_JUMPDEST = 10
MIN_GAS_SUICIDE = 0
MIN_GAS_BALANCE = 20
MIN_GAS_EXTCODESIZE = 20
MIN_GAS_EXTCODECOPY = 20

# ---------------------------------------------------------------------------
# Fixed costs (never voted)
# ---------------------------------------------------------------------------

GAS_RETURN = 0
GAS_DUP = 0

WORD_SIZE = 32


# ---------------------------------------------------------------------------
# Checked uint256 arithmetic
# ---------------------------------------------------------------------------

def checked_add(a: int, b: int) -> int:
    """Add two uint256 values, raising Uint256Overflow instead of wrapping."""
    result = a + b
    if result > UINT256_MAX:
        raise Uint256Overflow(result)
    return result


class GasAccumulator:
    """Running gas total owned by the caller and mutated by base_check().

    Dynamic surcharges (memory expansion, calls) are folded into the same
    accumulator by the interpreter through charge().
    """

    __slots__ = ("total",)

    def __init__(self, total: int = 0) -> None:
        if total < 0 or total > UINT256_MAX:
            raise ValueError(f"Gas total out of uint256 range: {total}")
        self.total = total

    def charge(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot charge negative gas: {amount}")
        self.total = checked_add(self.total, amount)

    def __int__(self) -> int:
        return self.total

    def __repr__(self) -> str:
        return f"GasAccumulator(total={self.total})"


# ---------------------------------------------------------------------------
# Word size
# ---------------------------------------------------------------------------

def word_count(byte_size: int) -> int:
    """Convert byte size to word (32-byte) count, rounding up."""
    if byte_size < 0:
        raise ValueError(f"Byte size cannot be negative: {byte_size}")
    return (byte_size + WORD_SIZE - 1) // WORD_SIZE
