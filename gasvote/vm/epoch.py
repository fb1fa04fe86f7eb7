"""
Epoch-boundary gas schedule retargeting.

Blocks carry a proposed GasClassSchedule. Every block's vote is checked against
the schedule in force; every `epoch_length` blocks the vote supplied for the
boundary block is applied and a new cost table is published.
"""

from __future__ import annotations

import logging
from typing import Optional

from gasvote.common.config import DEFAULT_CONFIG, GasConfig
from gasvote.vm.cost_table import ActiveCostTable, OpcodeCostTable, derive_cost_table
from gasvote.vm.schedule import GasClassSchedule, GasScheduleError, check_gas_pricing

logger = logging.getLogger(__name__)


class GasScheduleManager:
    """Single writer of the active cost table; applies schedule votes at epoch boundaries.

    Pass `active` to share one holder with the interpreter; it is reset to the
    configured genesis table. Readers take `current_table()` per instruction.
    """

    def __init__(
        self,
        config: GasConfig = DEFAULT_CONFIG,
        active: Optional[ActiveCostTable] = None,
    ) -> None:
        self.config = config
        genesis = derive_cost_table(config.genesis_schedule)
        if active is None:
            active = ActiveCostTable(genesis)
        else:
            active.swap(genesis)
        self.active = active
        self.epoch = 0

    @property
    def schedule(self) -> GasClassSchedule:
        return self.active.schedule

    def current_table(self) -> OpcodeCostTable:
        return self.active.current()

    def is_epoch_boundary(self, block_number: int) -> bool:
        return block_number > 0 and block_number % self.config.epoch_length == 0

    def epoch_of(self, block_number: int) -> int:
        return block_number // self.config.epoch_length

    def check_vote(self, proposed: GasClassSchedule) -> None:
        """Validate a block's vote against the schedule in force."""
        check_gas_pricing(proposed, self.schedule)

    def apply(self, proposed: GasClassSchedule) -> OpcodeCostTable:
        """Validate and publish `proposed`. The active table is untouched on failure."""
        try:
            table = self.active.apply(proposed)
        except GasScheduleError as e:
            logger.warning("Rejected gas schedule vote: %s", e)
            raise
        logger.info(
            "Gas schedule retargeted (epoch %d): 0x%s",
            self.epoch, table.fingerprint().hex()[:16],
        )
        return table

    def process_block(
        self,
        block_number: int,
        proposed: Optional[GasClassSchedule] = None,
    ) -> Optional[OpcodeCostTable]:
        """Handle one block's vote.

        Off-boundary votes are only checked. On a boundary the vote is applied
        and the new table returned; without a vote the schedule carries over.
        """
        if not self.is_epoch_boundary(block_number):
            if proposed is not None:
                logger.debug("Checking gas vote in block %d", block_number)
                self.check_vote(proposed)
            return None

        self.epoch = self.epoch_of(block_number)
        if proposed is None:
            logger.debug("No gas vote at epoch %d, schedule unchanged", self.epoch)
            return None
        return self.apply(proposed)
