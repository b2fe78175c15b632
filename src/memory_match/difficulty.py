"""Difficulty curve: level -> round configuration.

Levels 1-5 are hand-tuned. Levels 6-10 extrapolate from level 5 and level 11
onwards is a fixed maximal configuration, so every level >= 1 has a config.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .models import GridSize

logger = logging.getLogger(__name__)

MIN_GRID_SIDE = 4
MAX_GRID_SIDE = 10
MAX_PAIRS = 40
MIN_TIME_LIMIT = 30
SIMILARITY_CEILING = 0.94


class LayoutKind(str, Enum):
    GROUPED = "grouped"
    SCATTERED = "scattered"


@dataclass(frozen=True)
class RoundConfig:
    """Immutable configuration of a single round."""

    level: int
    pair_count: int
    grid_rows: int
    grid_cols: int
    time_limit_seconds: int
    similarity_threshold: float
    layout: LayoutKind
    description: str
    win_probability: float

    def __post_init__(self) -> None:
        if self.grid_rows * self.grid_cols != 2 * self.pair_count:
            raise ValueError(
                f"Grid {self.grid_rows}x{self.grid_cols} does not hold exactly {self.pair_count} pairs"
            )
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(f"similarity_threshold must be within [0, 1], got {self.similarity_threshold}")

    @property
    def grid(self) -> GridSize:
        return GridSize(self.grid_rows, self.grid_cols)

    @property
    def card_count(self) -> int:
        return 2 * self.pair_count


_HAND_TUNED = {
    1: RoundConfig(1, 8, 4, 4, 180, 0.30, LayoutKind.GROUPED, "Easy - Perfect for beginners", 0.85),
    2: RoundConfig(2, 12, 4, 6, 120, 0.50, LayoutKind.SCATTERED, "Medium - Scattered items", 0.65),
    3: RoundConfig(3, 16, 4, 8, 90, 0.65, LayoutKind.SCATTERED, "Hard - Very similar items", 0.45),
    4: RoundConfig(4, 20, 5, 8, 75, 0.75, LayoutKind.SCATTERED, "Very Hard - Extreme challenge", 0.25),
    5: RoundConfig(5, 25, 5, 10, 60, 0.85, LayoutKind.SCATTERED, "Expert - Nearly impossible", 0.15),
}

_LABELS = {1: "Easy", 2: "Medium", 3: "Hard", 4: "Very Hard", 5: "Expert"}

_MESSAGES = {
    1: "Great start! Keep going!",
    2: "Getting tougher! You can do it!",
    3: "Impressive! This is hard!",
    4: "Wow! You're really good!",
    5: "AMAZING! Few reach this level!",
}


def grid_for_pairs(pairs: int) -> GridSize:
    """Most square grid with sides in [4, 10] and an even cell count >= 2 * pairs.

    For each row count the smallest fitting column count is tried; the first
    grid with the smallest |rows - cols| wins.
    """
    if pairs < 1:
        raise ValueError(f"pairs must be >= 1, got {pairs}")
    cards = 2 * pairs
    best: Optional[GridSize] = None
    for rows in range(MIN_GRID_SIDE, MAX_GRID_SIDE + 1):
        cols = max(MIN_GRID_SIDE, math.ceil(cards / rows))
        if cols > MAX_GRID_SIDE or (rows * cols) % 2:
            continue
        if best is None or abs(rows - cols) < abs(best.rows - best.cols):
            best = GridSize(rows, cols)
    if best is None:
        raise ValueError(f"No grid with sides in [{MIN_GRID_SIDE}, {MAX_GRID_SIDE}] holds {pairs} pairs")
    return best


def _check_level(level: int) -> int:
    level = int(level)
    if level < 1:
        raise ValueError("Level must be >= 1")
    return level


class DifficultyCurve:
    """Pure lookups from a difficulty level to round parameters."""

    def config_for(self, level: int) -> RoundConfig:
        level = _check_level(level)
        if level in _HAND_TUNED:
            return _HAND_TUNED[level]
        if level <= 10:
            return self._extrapolated(level)
        return RoundConfig(
            level=level,
            pair_count=MAX_PAIRS,
            grid_rows=8,
            grid_cols=10,
            time_limit_seconds=MIN_TIME_LIMIT,
            similarity_threshold=0.98,
            layout=LayoutKind.SCATTERED,
            description=f"Level {level} - IMPOSSIBLE",
            win_probability=0.01,
        )

    @staticmethod
    def _extrapolated(level: int) -> RoundConfig:
        steps = level - 5
        requested = min(25 + 3 * steps, MAX_PAIRS)
        grid = grid_for_pairs(requested)
        # The grid may have spare cells; the pair count grows to fill them.
        pair_count = min(grid.cells // 2, MAX_PAIRS)
        config = RoundConfig(
            level=level,
            pair_count=pair_count,
            grid_rows=grid.rows,
            grid_cols=grid.cols,
            time_limit_seconds=max(60 - 5 * steps, MIN_TIME_LIMIT),
            similarity_threshold=round(min(0.85 + 0.02 * steps, SIMILARITY_CEILING), 2),
            layout=LayoutKind.SCATTERED,
            description=f"Level {level} - Insane difficulty",
            win_probability=round(max(0.15 - 0.02 * steps, 0.05), 2),
        )
        logger.debug("Extrapolated level %d: requested=%d pairs -> %s", level, requested, config)
        return config

    @staticmethod
    def score_multiplier(level: int) -> float:
        return 1 + 0.5 * (_check_level(level) - 1)

    @staticmethod
    def label(level: int) -> str:
        level = _check_level(level)
        if level in _LABELS:
            return _LABELS[level]
        if level <= 10:
            return "Insane"
        return "IMPOSSIBLE"

    @staticmethod
    def motivational_message(level: int) -> str:
        level = _check_level(level)
        if level in _MESSAGES:
            return _MESSAGES[level]
        if level <= 10:
            return "LEGENDARY! You're unstoppable!"
        return "IMPOSSIBLE! Are you even human?!"

    def unlock_eligible(self, level: int, score: float, time_remaining: float, accuracy: float) -> bool:
        """Whether a finished round at ``level`` unlocks the next level.

        Score, accuracy and time efficiency thresholds must all be met.
        """
        config = self.config_for(level)
        time_efficiency = time_remaining / config.time_limit_seconds

        min_score = level * 100
        min_accuracy = max(0.7 - level * 0.05, 0.5)
        min_time_efficiency = max(0.3 - level * 0.02, 0.1)

        eligible = score >= min_score and accuracy >= min_accuracy and time_efficiency >= min_time_efficiency
        logger.debug(
            "Unlock check L%d: score=%s/%s accuracy=%.3f/%.3f efficiency=%.3f/%.3f => %s",
            level,
            score,
            min_score,
            accuracy,
            min_accuracy,
            time_efficiency,
            min_time_efficiency,
            eligible,
        )
        return eligible


__all__ = ["DifficultyCurve", "RoundConfig", "LayoutKind", "grid_for_pairs"]
