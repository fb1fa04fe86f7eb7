"""
EVM opcode definitions, stack shapes and gas classes.

OPCODE_SHAPES maps each canonical opcode to its (stack pop, stack push) counts.
OPCODE_GAS_CLASS maps the same opcodes to the voteable class their base gas is
drawn from (None for fixed-cost opcodes). Both are protocol constants.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Optional

from gasvote.vm.schedule import GasClass


# ---------------------------------------------------------------------------
# Opcode enum / names
# ---------------------------------------------------------------------------

# fmt: off
class Op:
    STOP            = 0x00
    ADD             = 0x01
    MUL             = 0x02
    SUB             = 0x03
    DIV             = 0x04
    SDIV            = 0x05
    MOD             = 0x06
    SMOD            = 0x07
    ADDMOD          = 0x08
    MULMOD          = 0x09
    EXP             = 0x0A
    SIGNEXTEND      = 0x0B
    LT              = 0x10
    GT              = 0x11
    SLT             = 0x12
    SGT             = 0x13
    EQ              = 0x14
    ISZERO          = 0x15
    AND             = 0x16
    OR              = 0x17
    XOR             = 0x18
    NOT             = 0x19
    BYTE            = 0x1A
    SHA3            = 0x20
    ADDRESS         = 0x30
    BALANCE         = 0x31
    ORIGIN          = 0x32
    CALLER          = 0x33
    CALLVALUE       = 0x34
    CALLDATALOAD    = 0x35
    CALLDATASIZE    = 0x36
    CALLDATACOPY    = 0x37
    CODESIZE        = 0x38
    CODECOPY        = 0x39
    GASPRICE        = 0x3A
    EXTCODESIZE     = 0x3B
    EXTCODECOPY     = 0x3C
    BLOCKHASH       = 0x40
    COINBASE        = 0x41
    TIMESTAMP       = 0x42
    NUMBER          = 0x43
    DIFFICULTY      = 0x44
    GASLIMIT        = 0x45
    POP             = 0x50
    MLOAD           = 0x51
    MSTORE          = 0x52
    MSTORE8         = 0x53
    SLOAD           = 0x54
    SSTORE          = 0x55
    JUMP            = 0x56
    JUMPI           = 0x57
    PC              = 0x58
    MSIZE           = 0x59
    GAS             = 0x5A
    JUMPDEST        = 0x5B
    PUSH1           = 0x60
    PUSH32          = 0x7F
    DUP1            = 0x80
    DUP16           = 0x8F
    SWAP1           = 0x90
    SWAP16          = 0x9F
    LOG0            = 0xA0
    LOG4            = 0xA4
    CREATE          = 0xF0
    CALL            = 0xF1
    CALLCODE        = 0xF2
    RETURN          = 0xF3
    DELEGATECALL    = 0xF4
    SUICIDE         = 0xFF
# fmt: on


OPCODE_NAMES: dict[int, str] = {
    value: name
    for name, value in vars(Op).items()
    if not name.startswith("_") and isinstance(value, int)
}
for _i in range(1, 33):
    OPCODE_NAMES[Op.PUSH1 + _i - 1] = f"PUSH{_i}"
for _i in range(1, 17):
    OPCODE_NAMES[Op.DUP1 + _i - 1] = f"DUP{_i}"
    OPCODE_NAMES[Op.SWAP1 + _i - 1] = f"SWAP{_i}"
for _i in range(5):
    OPCODE_NAMES[Op.LOG0 + _i] = f"LOG{_i}"


def opcode_name(opcode: int) -> str:
    return OPCODE_NAMES.get(opcode, f"0x{opcode:02x}")


def push_data_size(opcode: int) -> int:
    """Number of immediate bytes following a PUSH opcode (0 for anything else)."""
    if Op.PUSH1 <= opcode <= Op.PUSH32:
        return opcode - Op.PUSH1 + 1
    return 0


# ---------------------------------------------------------------------------
# Family normalization
# ---------------------------------------------------------------------------

# (first, last) -> canonical representative. PUSH and DUP variants cost the
# same and share one cost table entry.
OPCODE_FAMILIES: tuple[tuple[int, int, int], ...] = (
    (Op.PUSH1, Op.PUSH32, Op.PUSH1),
    (Op.DUP1, Op.DUP16, Op.DUP1),
)


def _build_canonical() -> tuple[int, ...]:
    canonical = list(range(256))
    for first, last, representative in OPCODE_FAMILIES:
        for op in range(first, last + 1):
            canonical[op] = representative
    return tuple(canonical)


_CANONICAL = _build_canonical()


def normalize_opcode(opcode: int) -> int:
    """Map an opcode to the canonical representative of its family."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode out of range: {opcode}")
    return _CANONICAL[opcode]


# ---------------------------------------------------------------------------
# Stack shapes and gas classes
# ---------------------------------------------------------------------------

_SHAPES: dict[int, tuple[int, int, Optional[GasClass]]] = {}


def _register():
    t = _SHAPES
    fastest = GasClass.FASTEST_STEP
    fast = GasClass.FAST_STEP
    mid = GasClass.MID_STEP
    slow = GasClass.SLOW_STEP
    quick = GasClass.QUICK_STEP

    # opcode            stack pop, stack push, gas class
    t[Op.ADD]           = (2, 1, fastest)
    t[Op.LT]            = (2, 1, fastest)
    t[Op.GT]            = (2, 1, fastest)
    t[Op.SLT]           = (2, 1, fastest)
    t[Op.SGT]           = (2, 1, fastest)
    t[Op.EQ]            = (2, 1, fastest)
    t[Op.ISZERO]        = (1, 1, fastest)
    t[Op.SUB]           = (2, 1, fastest)
    t[Op.AND]           = (2, 1, fastest)
    t[Op.OR]            = (2, 1, fastest)
    t[Op.XOR]           = (2, 1, fastest)
    t[Op.NOT]           = (1, 1, fastest)
    t[Op.BYTE]          = (2, 1, fastest)
    t[Op.CALLDATALOAD]  = (1, 1, fastest)
    t[Op.CALLDATACOPY]  = (3, 1, fastest)
    t[Op.MLOAD]         = (1, 1, fastest)
    t[Op.MSTORE]        = (2, 0, fastest)
    t[Op.MSTORE8]       = (2, 0, fastest)
    t[Op.CODECOPY]      = (3, 0, fastest)
    t[Op.PUSH1]         = (0, 1, fastest)

    t[Op.MUL]           = (2, 1, fast)
    t[Op.DIV]           = (2, 1, fast)
    t[Op.SDIV]          = (2, 1, fast)
    t[Op.MOD]           = (2, 1, fast)
    t[Op.SMOD]          = (2, 1, fast)
    t[Op.SIGNEXTEND]    = (2, 1, fast)

    t[Op.ADDMOD]        = (3, 1, mid)
    t[Op.MULMOD]        = (3, 1, mid)
    t[Op.JUMP]          = (1, 0, mid)

    t[Op.JUMPI]         = (2, 0, slow)
    t[Op.EXP]           = (2, 1, slow)

    for op in (
        Op.ADDRESS, Op.ORIGIN, Op.CALLER, Op.CALLVALUE, Op.CODESIZE,
        Op.GASPRICE, Op.COINBASE, Op.TIMESTAMP, Op.NUMBER, Op.CALLDATASIZE,
        Op.DIFFICULTY, Op.GASLIMIT, Op.PC, Op.MSIZE, Op.GAS,
    ):
        t[op] = (0, 1, quick)
    t[Op.POP]           = (1, 0, quick)

    t[Op.BLOCKHASH]     = (1, 1, GasClass.EXT_STEP)
    t[Op.BALANCE]       = (1, 1, GasClass.BALANCE)
    t[Op.EXTCODESIZE]   = (1, 1, GasClass.EXTCODESIZE)
    t[Op.EXTCODECOPY]   = (4, 0, GasClass.EXTCODECOPY)
    t[Op.SLOAD]         = (1, 1, GasClass.SLOAD)
    t[Op.SSTORE]        = (2, 0, GasClass.SSTORE)
    t[Op.SHA3]          = (2, 1, GasClass.SHA3)
    t[Op.CREATE]        = (3, 1, GasClass.CREATE)
    t[Op.CALL]          = (7, 1, GasClass.CALL)
    t[Op.CALLCODE]      = (7, 1, GasClass.CALL)
    t[Op.DELEGATECALL]  = (6, 1, GasClass.CALL)
    t[Op.JUMPDEST]      = (0, 0, GasClass.JUMPDEST)
    t[Op.SUICIDE]       = (1, 0, GasClass.SUICIDE)

    # Fixed zero cost, not subject to voting
    t[Op.RETURN]        = (2, 0, None)
    t[Op.DUP1]          = (0, 1, None)


_register()

OPCODE_SHAPES: MappingProxyType[int, tuple[int, int]] = MappingProxyType(
    {op: (pop, push) for op, (pop, push, _) in _SHAPES.items()}
)
OPCODE_GAS_CLASS: MappingProxyType[int, Optional[GasClass]] = MappingProxyType(
    {op: gas_class for op, (_, _, gas_class) in _SHAPES.items()}
)
