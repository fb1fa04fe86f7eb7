"""Tests for the per-instruction stack and base gas check."""

import pytest
from gasvote.vm.cost_table import GENESIS_COST_TABLE, derive_cost_table
from gasvote.vm.gas import GasAccumulator
from gasvote.vm.guard import base_check
from gasvote.vm.memory import (
    MAX_STACK_DEPTH,
    DepthStack,
    Stack,
    StackOverflow,
    StackUnderflow,
    Uint256Overflow,
    UINT256_MAX,
)
from gasvote.vm.opcodes import OPCODE_SHAPES, Op
from gasvote.vm.schedule import GENESIS_GAS_SCHEDULE, GasClass


def stack_of(depth: int) -> Stack:
    s = Stack()
    for i in range(depth):
        s.push(i)
    return s


class TestAdd:
    def test_underflow(self):
        gas = GasAccumulator()
        with pytest.raises(StackUnderflow) as exc:
            base_check(Op.ADD, stack_of(1), gas, GENESIS_COST_TABLE)
        assert (exc.value.required, exc.value.actual) == (2, 1)
        assert gas.total == 0

    def test_charges_fastest_step(self):
        gas = GasAccumulator()
        stack = stack_of(2)
        assert base_check(Op.ADD, stack, gas, GENESIS_COST_TABLE) is True
        assert gas.total == 3
        r = GENESIS_COST_TABLE[Op.ADD]
        assert len(stack) - r.stack_pop + r.stack_push == 1

    def test_stack_not_mutated(self):
        stack = stack_of(3)
        base_check(Op.ADD, stack, GasAccumulator(), GENESIS_COST_TABLE)
        assert len(stack) == 3
        assert stack.peek(0) == 2

    def test_accumulates(self):
        gas = GasAccumulator(100)
        base_check(Op.ADD, stack_of(2), gas, GENESIS_COST_TABLE)
        base_check(Op.MUL, stack_of(2), gas, GENESIS_COST_TABLE)
        assert gas.total == 108


class TestOverflow:
    def test_push_at_limit(self):
        gas = GasAccumulator()
        with pytest.raises(StackOverflow) as exc:
            base_check(Op.PUSH1, DepthStack(MAX_STACK_DEPTH), gas, GENESIS_COST_TABLE)
        assert exc.value.limit == 1024
        assert exc.value.attempted == 1025
        assert gas.total == 0

    def test_push_below_limit(self):
        gas = GasAccumulator()
        base_check(Op.PUSH1, DepthStack(MAX_STACK_DEPTH - 1), gas, GENESIS_COST_TABLE)
        assert gas.total == 3

    def test_net_neutral_at_limit(self):
        # ADD pops 2 and pushes 1: fine even with a full stack
        base_check(Op.ADD, DepthStack(MAX_STACK_DEPTH), GasAccumulator(), GENESIS_COST_TABLE)

    def test_no_push_skips_overflow_check(self):
        base_check(Op.JUMPDEST, DepthStack(MAX_STACK_DEPTH + 5), GasAccumulator(), GENESIS_COST_TABLE)

    def test_custom_limit(self):
        with pytest.raises(StackOverflow):
            base_check(Op.CALLER, DepthStack(16), GasAccumulator(), GENESIS_COST_TABLE, stack_limit=16)


class TestProperties:
    @pytest.mark.parametrize("op", sorted(OPCODE_SHAPES))
    def test_bounds_for_every_opcode(self, op):
        r = GENESIS_COST_TABLE[op]
        for depth in (0, r.stack_pop - 1, r.stack_pop, MAX_STACK_DEPTH - 1, MAX_STACK_DEPTH):
            if depth < 0:
                continue
            gas = GasAccumulator()
            stack = DepthStack(depth)
            if depth < r.stack_pop:
                with pytest.raises(StackUnderflow):
                    base_check(op, stack, gas, GENESIS_COST_TABLE)
                continue
            result_depth = depth - r.stack_pop + r.stack_push
            if r.stack_push > 0 and result_depth > MAX_STACK_DEPTH:
                with pytest.raises(StackOverflow):
                    base_check(op, stack, gas, GENESIS_COST_TABLE)
            else:
                base_check(op, stack, gas, GENESIS_COST_TABLE)
                assert gas.total == r.gas

    def test_push_family_identical(self):
        for op in range(Op.PUSH1, Op.PUSH32 + 1):
            gas = GasAccumulator()
            base_check(op, DepthStack(0), gas, GENESIS_COST_TABLE)
            assert gas.total == GENESIS_COST_TABLE[Op.PUSH1].gas
            with pytest.raises(StackOverflow):
                base_check(op, DepthStack(MAX_STACK_DEPTH), gas, GENESIS_COST_TABLE)

    def test_dup_family_identical(self):
        for op in range(Op.DUP1, Op.DUP16 + 1):
            gas = GasAccumulator()
            assert base_check(op, DepthStack(1), gas, GENESIS_COST_TABLE)
            assert gas.total == 0
            with pytest.raises(StackOverflow):
                base_check(op, DepthStack(MAX_STACK_DEPTH), gas, GENESIS_COST_TABLE)


class TestUncovered:
    @pytest.mark.parametrize("op", [Op.STOP, Op.SWAP1, Op.LOG0, 0x1B, 0xFE])
    def test_not_checked_or_charged(self, op):
        gas = GasAccumulator()
        assert base_check(op, DepthStack(0), gas, GENESIS_COST_TABLE) is False
        assert gas.total == 0

    @pytest.mark.parametrize("op", [-1, -256, 0x100])
    def test_out_of_range_rejected(self, op):
        gas = GasAccumulator()
        with pytest.raises(ValueError):
            base_check(op, DepthStack(1), gas, GENESIS_COST_TABLE)
        assert gas.total == 0


class TestTables:
    def test_uses_given_table(self):
        table = derive_cost_table(
            GENESIS_GAS_SCHEDULE.with_values({GasClass.FASTEST_STEP: 6})
        )
        gas = GasAccumulator()
        base_check(Op.ADD, stack_of(2), gas, table)
        assert gas.total == 6

    def test_table_is_required(self):
        with pytest.raises(TypeError):
            base_check(Op.SLOAD, stack_of(1), GasAccumulator())

    def test_gas_overflow(self):
        gas = GasAccumulator(UINT256_MAX)
        with pytest.raises(Uint256Overflow):
            base_check(Op.ADD, stack_of(2), gas, GENESIS_COST_TABLE)
