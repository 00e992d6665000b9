"""
Permuted block randomization for treatment assignment.

Each new participant is assigned to one of the study arms. Assignments are
made in blocks of fixed size (4 by default) containing every arm equally
often in random order, which keeps the arms exactly balanced after every
complete block while keeping the next assignment unpredictable.

The only persistent state is the assignment log, read in full for every
decision. The permutation of the block in progress is cached in memory; if
the cache is missing or disagrees with the log (for example after a restart
mid-block), assignment falls back to picking the least-used arm.

Operator-forced assignments are recorded in the log but never count towards
balance.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_ARMS = ("detailed", "simple")
DEFAULT_BLOCK_SIZE = 4


@dataclass(frozen=True)
class Assignment:
    """
    A past assignment from the log.

    Attributes:
        label: Treatment arm the participant was assigned to.
        forced: True when an operator forced the arm; excluded from balancing.
    """

    label: str
    forced: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Assignment":
        """Build an Assignment from a stored session record."""
        return cls(
            label=record.get("condition") or "",
            forced=bool(record.get("condition_forced", False)),
        )


class BlockRandomizer:
    """
    Assigns treatment arms using permuted blocks.

    Not thread-safe: callers must serialize assign() calls that share a log.

    Attributes:
        arms: Arm labels.
        block_size: Assignments per block; a multiple of the number of arms.
    """

    def __init__(
        self,
        arms: Sequence[str] = DEFAULT_ARMS,
        block_size: int = DEFAULT_BLOCK_SIZE,
        rng: Optional[random.Random] = None,
    ):
        if len(arms) < 2:
            raise ValueError("at least two arms are required")
        if len(set(arms)) != len(arms):
            raise ValueError("arm labels must be unique")
        if block_size <= 0 or block_size % len(arms) != 0:
            raise ValueError(
                f"block_size must be a positive multiple of {len(arms)}, "
                f"got {block_size}"
            )
        self.arms = tuple(arms)
        self.block_size = block_size
        self.rng = rng or random.Random()
        self._current_block: Optional[List[str]] = None

    @property
    def current_block(self) -> Optional[List[str]]:
        """The cached permutation of the block in progress, if any."""
        return list(self._current_block) if self._current_block else None

    def reset(self) -> None:
        """Drop the cached block, as happens when the process restarts."""
        self._current_block = None

    def new_block(self) -> List[str]:
        """Equal copies of every arm, shuffled with Fisher-Yates."""
        per_arm = self.block_size // len(self.arms)
        block = [arm for arm in self.arms for _ in range(per_arm)]
        for i in range(len(block) - 1, 0, -1):
            j = self.rng.randint(0, i)
            block[i], block[j] = block[j], block[i]
        return block

    def assign(self, log: Sequence[Assignment]) -> str:
        """
        Choose the arm for the next participant.

        Args:
            log: All previous assignments, oldest first.

        Returns:
            The arm label.
        """
        assigned = [a.label for a in log if not a.forced and a.label]
        position = len(assigned) % self.block_size

        if position == 0:
            self._current_block = self.new_block()
            logger.info("Starting new block: %s", self._current_block)
            return self._current_block[0]

        block = self._current_block
        if block is not None and len(block) == self.block_size:
            if block[:position] == assigned[-position:]:
                return block[position]

        logger.warning(
            "Block cache out of sync at position %d of %d; assigning by balance",
            position,
            self.block_size,
        )
        return self._least_assigned(assigned)

    def _least_assigned(self, assigned: Sequence[str]) -> str:
        counts = {arm: 0 for arm in self.arms}
        for label in assigned:
            if label in counts:
                counts[label] += 1
        fewest = min(counts.values())
        candidates = [arm for arm in self.arms if counts[arm] == fewest]
        if len(candidates) == 1:
            return candidates[0]
        return self.rng.choice(candidates)

