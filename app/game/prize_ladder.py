from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True, slots=True)
class PrizeLadder:
    """Immutable question-number -> prize mapping with safe checkpoints.

    Rungs are numbered from 1. Prizes must be strictly increasing and every
    safe checkpoint must be a rung of the ladder.
    """

    prizes: Mapping[int, int]
    safe_checkpoints: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        rungs = sorted(self.prizes)
        if not rungs or rungs != list(range(1, len(rungs) + 1)):
            raise ValueError("prize ladder rungs must be 1..N without gaps")
        amounts = [self.prizes[rung] for rung in rungs]
        if any(later <= earlier for earlier, later in zip(amounts, amounts[1:])):
            raise ValueError("prize ladder amounts must be strictly increasing")
        if not self.safe_checkpoints <= set(rungs):
            raise ValueError("safe checkpoints must be ladder rungs")
        object.__setattr__(self, "prizes", MappingProxyType(dict(self.prizes)))
        object.__setattr__(self, "safe_checkpoints", frozenset(self.safe_checkpoints))

    @property
    def total_rungs(self) -> int:
        return len(self.prizes)

    @property
    def grand_prize(self) -> int:
        return self.prizes[self.total_rungs]

    def prize_for(self, rung: int) -> int:
        try:
            return self.prizes[rung]
        except KeyError as exc:
            raise ValueError(f"rung {rung} is outside the prize ladder") from exc

    def is_safe(self, rung: int) -> bool:
        return rung in self.safe_checkpoints

    def is_final(self, rung: int) -> bool:
        return rung == self.total_rungs

    def guaranteed_payout(self, current_rung: int) -> int:
        """Prize of the highest checkpoint strictly below ``current_rung``."""
        reached = [checkpoint for checkpoint in self.safe_checkpoints if checkpoint < current_rung]
        if not reached:
            return 0
        return self.prizes[max(reached)]


REFERENCE_LADDER = PrizeLadder(
    prizes={
        1: 200,
        2: 250,
        3: 300,
        4: 500,
        5: 1000,
        6: 2000,
        7: 3000,
        8: 5000,
        9: 8000,
        10: 10000,
        11: 20000,
        12: 25000,
        13: 30000,
        14: 40000,
        15: 50000,
    },
    safe_checkpoints=frozenset({5, 10}),
)
