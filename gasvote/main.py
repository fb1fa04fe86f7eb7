"""
gasvote: inspect and validate voteable EVM gas schedules.

Subcommands:
  table     print the opcode cost table for a schedule
  validate  check a proposed schedule against the active one
  trace     total the base gas of straight-line bytecode
  words     convert a byte length to 32-byte words
  encode    print the RLP encoding and fingerprint of a schedule
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from eth_utils import decode_hex, encode_hex

from gasvote.common.config import DEFAULT_CONFIG, load_config, load_schedule
from gasvote.vm.cost_table import derive_cost_table
from gasvote.vm.epoch import GasScheduleManager
from gasvote.vm.gas import word_count
from gasvote.vm.schedule import GasScheduleError, check_gas_pricing
from gasvote.vm.tracer import trace_base_gas


logger = logging.getLogger("gasvote")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gasvote",
        description="Voteable EVM gas schedule tooling",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a gas config JSON file (default: built-in genesis)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    table = sub.add_parser("table", help="Print the opcode cost table")
    table.add_argument("--schedule", default=None, help="Schedule JSON (default: active)")

    validate = sub.add_parser("validate", help="Validate a proposed schedule")
    validate.add_argument("proposed", help="Proposed schedule JSON")
    validate.add_argument("--active", default=None, help="Active schedule JSON (default: genesis)")

    trace = sub.add_parser("trace", help="Total base gas of bytecode")
    trace.add_argument("bytecode", help="Hex-encoded bytecode")
    trace.add_argument("--depth", type=int, default=0, help="Initial stack depth")

    words = sub.add_parser("words", help="Byte length to 32-byte word count")
    words.add_argument("size", type=int, help="Byte length")

    encode = sub.add_parser("encode", help="RLP-encode a schedule")
    encode.add_argument("schedule", help="Schedule JSON")

    return parser


def cmd_table(args, manager: GasScheduleManager) -> int:
    if args.schedule:
        table = derive_cost_table(load_schedule(args.schedule))
    else:
        table = manager.current_table()
    print(f"{'OPCODE':<14}{'POP':>4}{'GAS':>8}{'PUSH':>6}")
    for name, stack_pop, gas, stack_push in table.describe():
        print(f"{name:<14}{stack_pop:>4}{gas:>8}{stack_push:>6}")
    print(f"schedule {encode_hex(table.fingerprint())}")
    return 0


def cmd_validate(args, manager: GasScheduleManager) -> int:
    proposed = load_schedule(args.proposed)
    active = load_schedule(args.active) if args.active else manager.schedule
    try:
        check_gas_pricing(proposed, active)
    except GasScheduleError as e:
        print(f"rejected: {e}")
        return 1
    print(f"accepted: {encode_hex(proposed.fingerprint())}")
    return 0


def cmd_trace(args, manager: GasScheduleManager) -> int:
    result = trace_base_gas(
        decode_hex(args.bytecode),
        manager.current_table(),
        initial_depth=args.depth,
        stack_limit=manager.config.stack_limit,
    )
    for step in result.steps:
        marker = "" if step.checked else "  (unchecked)"
        print(f"{step.pc:>5}  {step.name:<14}{step.gas:>8}  depth {step.depth_after}{marker}")
    print(f"total base gas: {result.gas}")
    if result.error is not None:
        print(f"error at pc {result.error_pc}: {result.error}")
        return 1
    return 0


def cmd_words(args, manager: GasScheduleManager) -> int:
    print(word_count(args.size))
    return 0


def cmd_encode(args, manager: GasScheduleManager) -> int:
    schedule = load_schedule(args.schedule)
    print(encode_hex(schedule.encode_rlp()))
    print(f"fingerprint {encode_hex(schedule.fingerprint())}")
    return 0


COMMANDS = {
    "table": cmd_table,
    "validate": cmd_validate,
    "trace": cmd_trace,
    "words": cmd_words,
    "encode": cmd_encode,
}


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = DEFAULT_CONFIG
        if args.config:
            config = load_config(args.config)
            logger.info("Loaded gas config from %s", args.config)
        manager = GasScheduleManager(config)
        return COMMANDS[args.command](args, manager)
    except (OSError, ValueError, GasScheduleError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
