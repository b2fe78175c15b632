from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .catalog import Catalog, PlayableItem, select_round_items
from .difficulty import DifficultyCurve, RoundConfig
from .engine import CardMatchEngine
from .models import PerformanceRecord, PlayerCategory, RoundSummary
from .performance import CategoryLike, PerformanceAdapter, TrendAnalysis
from .remote import DifficultyAdvisor, RemoteDifficultyClient
from .rewards import RewardCalculator, RoundReward
from .rng import RandomSource
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedRound:
    config: RoundConfig
    items: List[PlayableItem]
    category: PlayerCategory
    trend: TrendAnalysis
    tips: List[str]

    @property
    def level(self) -> int:
        return self.config.level


@dataclass(frozen=True)
class RoundResult:
    summary: RoundSummary
    reward: RoundReward

    def to_record(self) -> PerformanceRecord:
        """History entry for this round; put it first in the history given to the next ``plan()``."""
        return self.summary.performance_metrics.to_record(self.summary.difficulty_level)

    def as_dict(self) -> dict:
        data = self.summary.as_dict()
        data["reward_points"] = self.reward.points
        data["unlocked_next_level"] = self.reward.unlocked_next_level
        return data


class RoundPlanner:
    """Runs the round lifecycle the way a game screen does.

    plan: history -> level -> config -> items
    start: config + items -> engine
    finish: engine -> summary + reward, ready for the persistence service
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        advisor: Optional[DifficultyAdvisor] = None,
        rewards: Optional[RewardCalculator] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.curve = DifficultyCurve()
        if advisor is None:
            adapter = PerformanceAdapter(self.settings.adapter, self.curve)
            advisor = DifficultyAdvisor(adapter, RemoteDifficultyClient.from_settings(self.settings.remote))
        self.advisor = advisor
        self.rewards = rewards or RewardCalculator(self.curve)

    def plan(
        self,
        history: Sequence[PerformanceRecord],
        category: CategoryLike,
        catalog: Catalog,
        *,
        item_category: Optional[str] = None,
        rng: Optional[RandomSource] = None,
    ) -> PlannedRound:
        category = PlayerCategory.parse(category)
        level = self.advisor.recommend(history, category)
        config = self.curve.config_for(level)
        pool = catalog.items(item_category, category.value, level)
        items = select_round_items(pool, config, item_category, rng)
        adapter = self.advisor.adapter
        planned = PlannedRound(
            config=config,
            items=items,
            category=category,
            trend=adapter.analyze_trend(history),
            tips=adapter.tips_for(history[0] if history else None),
        )
        logger.info("Planned level %d (%s) for %s player", level, self.curve.label(level), category.value)
        return planned

    def start(self, planned: PlannedRound, **engine_kwargs: Any) -> CardMatchEngine:
        engine_kwargs.setdefault("settings", self.settings)
        engine = CardMatchEngine.from_config(planned.items, planned.config, **engine_kwargs)
        engine.start_timer()
        return engine

    def finish(self, engine: CardMatchEngine) -> RoundResult:
        engine.destroy()
        summary = engine.summary()
        reward = self.rewards.evaluate(summary)
        logger.info(
            "Round finished: level=%d score=%d won=%s reward=%d unlocked=%s",
            summary.difficulty_level,
            summary.score,
            summary.is_won,
            reward.points,
            reward.unlocked_next_level,
        )
        return RoundResult(summary=summary, reward=reward)
