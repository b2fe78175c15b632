from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RandomSource:
    """Per-session shuffle source.

    Each engine owns one, so deals never touch the global ``random`` state and
    a fixed ``seed`` reproduces the same deck.
    """

    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self._rng = random.Random(self.seed)
        logger.debug("RandomSource ready (seed=%s)", "random" if self.seed is None else self.seed)

    def shuffled(self, items: Sequence[T]) -> List[T]:
        """Return a new list holding ``items`` in uniformly random order (Fisher-Yates)."""
        out = list(items)
        for i in range(len(out) - 1, 0, -1):
            j = self._rng.randrange(0, i + 1)
            out[i], out[j] = out[j], out[i]
        return out


__all__ = ["RandomSource"]
