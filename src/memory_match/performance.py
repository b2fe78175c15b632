"""Rule-based adaptive difficulty.

The adapter looks at a player's recent round history and recommends the next
level. It is always available locally and is what the game falls back to when
the remote recommendation service cannot answer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from statistics import fmean
from typing import List, NamedTuple, Optional, Sequence, Union

from .difficulty import DifficultyCurve, RoundConfig
from .models import PerformanceRecord, PlayerCategory
from .settings import AdapterSettings

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 5

CategoryLike = Union[PlayerCategory, str]


class _Tier(NamedTuple):
    level: int
    min_performance: float
    min_accuracy: float
    max_match_time: Optional[float]  # exclusive; None means no speed requirement


# Checked top down; every condition of a tier must hold.
_TIERS = (
    _Tier(5, 90.0, 0.9, 2.0),
    _Tier(4, 75.0, 0.8, 3.0),
    _Tier(3, 60.0, 0.7, 4.0),
    _Tier(2, 40.0, 0.6, None),
)

_DEFAULT_LEVEL = {
    PlayerCategory.CHILD: 1,
    PlayerCategory.TEEN: 2,
    PlayerCategory.ADULT: 2,
}

_LEVEL_CEILING = {
    PlayerCategory.CHILD: 3,
    PlayerCategory.TEEN: 4,
    PlayerCategory.ADULT: MAX_LEVEL,
}

NEED_MORE_DATA = "Keep playing to establish your skill level"
TREND_UP = "Great progress! Consider increasing difficulty."
TREND_DOWN = "Take your time. Consider easier difficulty."
TREND_STABLE = "You're performing consistently. Keep it up!"

TIP_SLOW = "Try to match cards faster for higher scores"
TIP_ACCURACY = "Focus on remembering card positions"
TIP_COMBO = "Build combos by matching cards quickly in succession"
TIP_DEFAULT = "You're doing great! Keep up the good work!"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendAnalysis:
    trend: Trend
    recommendation: str

    @property
    def is_improving(self) -> bool:
        return self.trend is Trend.UP


def _clamp(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


class PerformanceAdapter:
    """Recommends difficulty levels, trends and tips from performance history.

    Histories are sequences of PerformanceRecord ordered most recent first.
    """

    def __init__(self, settings: Optional[AdapterSettings] = None, curve: Optional[DifficultyCurve] = None) -> None:
        self.settings = settings or AdapterSettings()
        self.curve = curve or DifficultyCurve()

    def default_level(self, category: CategoryLike) -> int:
        return _DEFAULT_LEVEL[PlayerCategory.parse(category)]

    def level_ceiling(self, category: CategoryLike) -> int:
        return _LEVEL_CEILING[PlayerCategory.parse(category)]

    def raw_level(self, window: Sequence[PerformanceRecord]) -> int:
        """Tier level for a non-empty window, before category and progression limits."""
        avg_performance = fmean(r.performance_score for r in window)
        avg_accuracy = fmean(r.accuracy_rate for r in window)
        avg_match_time = fmean(r.average_match_time_seconds for r in window)

        level = MIN_LEVEL
        for tier in _TIERS:
            fast_enough = tier.max_match_time is None or avg_match_time < tier.max_match_time
            if avg_performance >= tier.min_performance and avg_accuracy >= tier.min_accuracy and fast_enough:
                level = tier.level
                break
        logger.debug(
            "Window of %d: performance=%.2f accuracy=%.3f match_time=%.2f => raw level %d",
            len(window),
            avg_performance,
            avg_accuracy,
            avg_match_time,
            level,
        )
        return level

    def constrain(self, level: int, history: Sequence[PerformanceRecord], category: CategoryLike) -> int:
        """Apply the category ceiling, one-step progression and the [1, 5] bounds."""
        level = min(level, self.level_ceiling(category))
        if history:
            current = history[0].difficulty_level
            if abs(level - current) > 1:
                level = current + (1 if level > current else -1)
        return _clamp(level)

    def recommend_level(self, history: Sequence[PerformanceRecord], category: CategoryLike) -> int:
        if not history:
            level = self.default_level(category)
            logger.info("No history for %s player; starting at level %d", PlayerCategory.parse(category).value, level)
            return level

        window = list(history[: self.settings.history_window])
        level = self.constrain(self.raw_level(window), history, category)
        logger.info("Recommended level %d (last played %d)", level, history[0].difficulty_level)
        return level

    def config_for_history(self, history: Sequence[PerformanceRecord], category: CategoryLike) -> RoundConfig:
        return self.curve.config_for(self.recommend_level(history, category))

    def analyze_trend(self, history: Sequence[PerformanceRecord]) -> TrendAnalysis:
        n = self.settings.trend_window
        if len(history) < n:
            return TrendAnalysis(Trend.STABLE, NEED_MORE_DATA)

        recent = history[:n]
        older = history[n : 2 * n]
        if not older:
            return TrendAnalysis(Trend.STABLE, TREND_STABLE)

        difference = fmean(r.performance_score for r in recent) - fmean(r.performance_score for r in older)
        logger.debug("Trend difference over %d/%d records: %.2f", len(recent), len(older), difference)
        if difference > self.settings.trend_threshold:
            return TrendAnalysis(Trend.UP, TREND_UP)
        if difference < -self.settings.trend_threshold:
            return TrendAnalysis(Trend.DOWN, TREND_DOWN)
        return TrendAnalysis(Trend.STABLE, TREND_STABLE)

    @staticmethod
    def tips_for(record: Optional[PerformanceRecord]) -> List[str]:
        if record is None:
            return []
        tips: List[str] = []
        if record.average_match_time_seconds > 5:
            tips.append(TIP_SLOW)
        if record.accuracy_rate < 0.7:
            tips.append(TIP_ACCURACY)
        if record.combo_frequency < 0.3:
            tips.append(TIP_COMBO)
        if not tips:
            tips.append(TIP_DEFAULT)
        return tips

    @staticmethod
    def weighted_performance_score(
        avg_match_time: float,
        accuracy_rate: float,
        combo_frequency: float,
        time_left: float,
        time_limit: float,
    ) -> int:
        """0-100ish blend that also rewards unused time; used for leaderboard-style summaries."""
        speed_score = max(0.0, 100 - avg_match_time * 10)
        accuracy_score = accuracy_rate * 100
        combo_score = combo_frequency * 100
        time_bonus = (time_left / time_limit) * 20 if time_limit > 0 else 0.0
        return round(speed_score * 0.3 + accuracy_score * 0.4 + combo_score * 0.2 + time_bonus * 0.1)


__all__ = ["PerformanceAdapter", "Trend", "TrendAnalysis", "MIN_LEVEL", "MAX_LEVEL"]
