from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PlayerCategory(str, Enum):
    """Age band of the player, from most to least restricted."""

    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"

    @classmethod
    def parse(cls, value: Union["PlayerCategory", str, None]) -> "PlayerCategory":
        """Coerce a raw category; unknown values fall back to the most restricted band."""
        if isinstance(value, PlayerCategory):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning("Unknown player category %r; treating as %s", value, cls.CHILD.value)
            return cls.CHILD


class GridSize(NamedTuple):
    rows: int
    cols: int

    @property
    def cells(self) -> int:
        return self.rows * self.cols


class PerformanceRecord(BaseModel):
    """Summary of one finished round as stored by the persistence service.

    Histories are ordered most recent first.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    difficulty_level: int = Field(..., ge=1, description="Level the round was played at")
    average_match_time_seconds: float = Field(..., ge=0, alias="avg_match_time")
    accuracy_rate: float = Field(..., ge=0, le=1)
    combo_frequency: float = Field(..., ge=0, le=1)
    performance_score: float = Field(..., ge=0, le=100)

    @classmethod
    def many(cls, rows: Iterable[Mapping[str, Any]]) -> List["PerformanceRecord"]:
        return [cls.model_validate(dict(r)) for r in rows]


@dataclass(frozen=True)
class PerformanceMetrics:
    """Derived metrics for one session."""

    avg_match_time: float
    accuracy_rate: float
    combo_frequency: float
    speed_score: float
    difficulty_score: float
    performance_score: float

    def to_record(self, difficulty_level: int) -> PerformanceRecord:
        return PerformanceRecord(
            difficulty_level=difficulty_level,
            average_match_time_seconds=self.avg_match_time,
            accuracy_rate=min(1.0, self.accuracy_rate),
            combo_frequency=min(1.0, self.combo_frequency),
            performance_score=min(100.0, self.performance_score),
        )

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RoundSummary:
    """Payload handed to the persistence service when a round finishes."""

    difficulty_level: int
    score: int
    matched_pairs: int
    total_pairs: int
    time_taken: int
    time_remaining: int
    max_combo: int
    is_won: bool
    performance_metrics: PerformanceMetrics

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["performance_metrics"] = self.performance_metrics.as_dict()
        return data
