"""
EVM stack and the per-instruction error kinds.

Stack: 1024-depth, 256-bit (uint256) values.
Errors carry their operands so callers can inspect them without parsing text.
"""

from __future__ import annotations

# Max uint256
UINT256_MAX = (1 << 256) - 1

MAX_STACK_DEPTH = 1024


class EvmError(Exception):
    """Base class for EVM execution errors."""
    pass


class StackUnderflow(EvmError):
    """Fewer items on the stack than the instruction pops."""

    def __init__(self, required: int, actual: int):
        self.required = required
        self.actual = actual
        super().__init__(f"Stack underflow: required {required}, have {actual}")


class StackOverflow(EvmError):
    """Instruction would leave the stack deeper than the limit."""

    def __init__(self, limit: int, attempted: int):
        self.limit = limit
        self.attempted = attempted
        super().__init__(f"Stack limit reached: {attempted} > {limit}")


class Uint256Overflow(EvmError):
    """Checked arithmetic produced a value that does not fit in 256 bits."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Value exceeds uint256: {value}")


class Stack:
    """EVM stack: max 1024 items, each item is a 256-bit unsigned integer."""

    __slots__ = ("_data", "limit")

    def __init__(self, limit: int = MAX_STACK_DEPTH) -> None:
        self._data: list[int] = []
        self.limit = limit

    def push(self, value: int) -> None:
        if len(self._data) >= self.limit:
            raise StackOverflow(self.limit, len(self._data) + 1)
        self._data.append(value & UINT256_MAX)

    def pop(self) -> int:
        if not self._data:
            raise StackUnderflow(1, 0)
        return self._data.pop()

    def peek(self, depth: int = 0) -> int:
        self.require(depth + 1)
        return self._data[-(depth + 1)]

    def require(self, n: int) -> None:
        """Raise StackUnderflow unless at least `n` items are present."""
        if len(self._data) < n:
            raise StackUnderflow(n, len(self._data))

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)


class DepthStack:
    """Stack stand-in that only tracks depth.

    Used where values are irrelevant, e.g. when walking bytecode to total its
    base gas without executing it.
    """

    __slots__ = ("depth",)

    def __init__(self, depth: int = 0) -> None:
        if depth < 0:
            raise ValueError("Stack depth cannot be negative")
        self.depth = depth

    def require(self, n: int) -> None:
        if self.depth < n:
            raise StackUnderflow(n, self.depth)

    def adjust(self, popped: int, pushed: int) -> None:
        self.require(popped)
        self.depth = self.depth - popped + pushed

    @property
    def size(self) -> int:
        return self.depth

    def __len__(self) -> int:
        return self.depth
