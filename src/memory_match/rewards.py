import logging
import math
from dataclasses import dataclass
from typing import Optional

from .difficulty import DifficultyCurve
from .models import RoundSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundReward:
    points: int
    unlocked_next_level: bool


class RewardCalculator:
    """Calculates reward points and level unlocks for finished rounds."""

    def __init__(self, curve: Optional[DifficultyCurve] = None) -> None:
        self.curve = curve or DifficultyCurve()

    def reward_points(self, level: int, score: float, time_remaining: float, accuracy: float) -> int:
        base = score * self.curve.score_multiplier(level)
        time_bonus = time_remaining * 2
        accuracy_bonus = accuracy * 100
        points = max(0, math.floor(base + time_bonus + accuracy_bonus))
        logger.debug(
            "Reward computed: level=%s base=%.2f time_bonus=%.2f accuracy_bonus=%.2f => %s",
            level,
            base,
            time_bonus,
            accuracy_bonus,
            points,
        )
        return points

    def evaluate(self, summary: RoundSummary) -> RoundReward:
        accuracy = summary.performance_metrics.accuracy_rate
        points = self.reward_points(summary.difficulty_level, summary.score, summary.time_remaining, accuracy)
        unlocked = self.curve.unlock_eligible(summary.difficulty_level, summary.score, summary.time_remaining, accuracy)
        return RoundReward(points=points, unlocked_next_level=unlocked)
