"""Optional remote difficulty recommendations with a local fallback.

The remote service is a collaborator outside this package; this module only
knows how to ask it for a level and how to fall back to the rule-based
PerformanceAdapter when it cannot answer.
"""
from __future__ import annotations

import logging
from statistics import fmean
from typing import Any, Dict, Optional, Sequence

import requests
from pydantic import BaseModel, Field, ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import RecommendationUnavailable, RemoteServiceError
from .models import PerformanceRecord, PlayerCategory
from .performance import MAX_LEVEL, MIN_LEVEL, CategoryLike, PerformanceAdapter
from .settings import RemoteSettings

logger = logging.getLogger(__name__)


class NextDifficulty(BaseModel):
    level: int = Field(..., ge=MIN_LEVEL, le=MAX_LEVEL)
    reasoning: str = ""


class DifficultyResponse(BaseModel):
    next_difficulty: NextDifficulty


class RemoteDifficultyClient:
    """Minimal JSON client for a difficulty recommendation endpoint."""

    def __init__(self, url: str, timeout: float = 5.0, attempts: int = 2, session: Optional[requests.Session] = None) -> None:
        if not url:
            raise ValueError("Remote difficulty url is required")
        self.url = url
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": "memory-match"})

    @classmethod
    def from_settings(cls, settings: RemoteSettings) -> Optional["RemoteDifficultyClient"]:
        if not settings.enabled or not settings.url:
            return None
        return cls(settings.url, timeout=settings.timeout_seconds, attempts=settings.attempts)

    @staticmethod
    def build_payload(history: Sequence[PerformanceRecord], category: PlayerCategory) -> Dict[str, Any]:
        latest = history[0]
        return {
            "performance": {
                "avg_match_time": latest.average_match_time_seconds,
                "accuracy": latest.accuracy_rate,
                "combo_frequency": latest.combo_frequency,
                "performance_score": latest.performance_score,
                "recent_average_score": fmean(r.performance_score for r in history[:10]),
            },
            "current_difficulty": {"level": latest.difficulty_level},
            "player_type": category.value,
        }

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        if resp.status_code >= 500:
            logger.warning("Difficulty service 5xx response: %s - %s", resp.status_code, resp.text)
            raise RemoteServiceError(f"Difficulty service error: {resp.status_code}")
        if resp.status_code >= 400:
            raise RecommendationUnavailable(f"Difficulty service rejected request {resp.status_code}: {resp.text}")
        return resp

    def next_level(self, history: Sequence[PerformanceRecord], category: PlayerCategory) -> int:
        """Ask the service for the next level. Raises RecommendationUnavailable on any failure."""
        retrying = Retrying(
            wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
            stop=stop_after_attempt(self.attempts),
            retry=retry_if_exception_type(RemoteServiceError),
            reraise=True,
        )
        try:
            resp = retrying(self._post, self.build_payload(history, category))
            parsed = DifficultyResponse.model_validate(resp.json())
        except requests.RequestException as exc:
            raise RecommendationUnavailable(f"Difficulty service unreachable: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise RecommendationUnavailable(f"Difficulty service sent an invalid payload: {exc}") from exc
        logger.info("Remote recommendation: level %d (%s)", parsed.next_difficulty.level, parsed.next_difficulty.reasoning)
        return parsed.next_difficulty.level


class DifficultyAdvisor:
    """Chooses the next level, preferring the remote service when one is configured.

    Never raises for service problems: the rule-based adapter answers instead.
    """

    def __init__(self, adapter: Optional[PerformanceAdapter] = None, client: Optional[RemoteDifficultyClient] = None) -> None:
        self.adapter = adapter or PerformanceAdapter()
        self.client = client

    def recommend(self, history: Sequence[PerformanceRecord], category: CategoryLike) -> int:
        category = PlayerCategory.parse(category)
        if self.client is None or not history:
            return self.adapter.recommend_level(history, category)
        try:
            level = self.client.next_level(history, category)
        except RecommendationUnavailable as exc:
            logger.warning("Remote difficulty unavailable (%s); using rule-based fallback", exc)
            return self.adapter.recommend_level(history, category)
        # Remote answers obey the same ceiling and progression rules as local ones.
        return self.adapter.constrain(level, history, category)
