"""
Gas subsystem configuration.

Loaded from a JSON document of the form:

    {
        "epochLength": 64,
        "stackLimit": 1024,
        "gasSchedule": {"sload": "0x1f4", "call": 600}
    }

Every key is optional; gasSchedule entries override the genesis defaults.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from gasvote.vm.memory import MAX_STACK_DEPTH
from gasvote.vm.schedule import (
    GENESIS_GAS_SCHEDULE,
    GasClassSchedule,
    check_gas_floor,
    parse_gas_value,
)

EPOCH_LENGTH = 64


@dataclass(frozen=True)
class GasConfig:
    epoch_length: int = EPOCH_LENGTH
    stack_limit: int = MAX_STACK_DEPTH
    genesis_schedule: GasClassSchedule = field(default=GENESIS_GAS_SCHEDULE)

    def __post_init__(self) -> None:
        if self.epoch_length <= 0:
            raise ValueError(f"epoch_length must be positive, got {self.epoch_length}")
        if self.stack_limit <= 0:
            raise ValueError(f"stack_limit must be positive, got {self.stack_limit}")
        check_gas_floor(self.genesis_schedule)

    @classmethod
    def from_json(cls, data: dict) -> GasConfig:
        schedule = GasClassSchedule.from_json(
            data.get("gasSchedule", {}), defaults=GENESIS_GAS_SCHEDULE
        )
        return cls(
            epoch_length=parse_gas_value(data.get("epochLength", EPOCH_LENGTH)),
            stack_limit=parse_gas_value(data.get("stackLimit", MAX_STACK_DEPTH)),
            genesis_schedule=schedule,
        )

    def to_json(self) -> dict:
        return {
            "epochLength": self.epoch_length,
            "stackLimit": self.stack_limit,
            "gasSchedule": self.genesis_schedule.to_json(),
        }


DEFAULT_CONFIG = GasConfig()


def load_config(path: Union[str, Path]) -> GasConfig:
    with open(path) as f:
        return GasConfig.from_json(json.load(f))


def load_schedule(path: Union[str, Path]) -> GasClassSchedule:
    """Read a complete schedule (all 16 classes) from a JSON file."""
    with open(path) as f:
        return GasClassSchedule.from_json(json.load(f))
