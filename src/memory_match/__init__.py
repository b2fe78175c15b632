"""
Memory match game core.

Headless domain logic for a card matching game:
- DifficultyCurve: level -> round configuration, score multiplier, unlock rules
- RewardCalculator: reward points for finished rounds
- PerformanceAdapter: rule-based adaptive difficulty, trends and tips
- CardMatchEngine: the live session (immutable state, pure transitions,
  scheduled countdown and mismatch conceal, event stream)
- RoundPlanner: the round lifecycle as driven by a game screen

UI layers, persistence and networking live outside this package and compose
these services.
"""
from .difficulty import DifficultyCurve, LayoutKind, RoundConfig
from .engine import Card, CardFace, CardMatchEngine, SessionState
from .errors import (
    InsufficientContentError,
    InvalidGridError,
    MemoryMatchError,
    RecommendationUnavailable,
    RemoteServiceError,
    SettingsError,
)
from .events import EventBus, RoundEnded, StateChanged
from .models import GridSize, PerformanceMetrics, PerformanceRecord, PlayerCategory, RoundSummary
from .performance import PerformanceAdapter, Trend, TrendAnalysis
from .remote import DifficultyAdvisor, RemoteDifficultyClient
from .rewards import RewardCalculator, RoundReward
from .rng import RandomSource
from .rounds import PlannedRound, RoundPlanner, RoundResult
from .scheduling import AsyncioScheduler, ManualScheduler
from .settings import Settings

__all__ = [
    "DifficultyCurve",
    "LayoutKind",
    "RoundConfig",
    "Card",
    "CardFace",
    "CardMatchEngine",
    "SessionState",
    "MemoryMatchError",
    "InvalidGridError",
    "InsufficientContentError",
    "RecommendationUnavailable",
    "RemoteServiceError",
    "SettingsError",
    "EventBus",
    "StateChanged",
    "RoundEnded",
    "GridSize",
    "PerformanceMetrics",
    "PerformanceRecord",
    "PlayerCategory",
    "RoundSummary",
    "PerformanceAdapter",
    "Trend",
    "TrendAnalysis",
    "DifficultyAdvisor",
    "RemoteDifficultyClient",
    "RewardCalculator",
    "RoundReward",
    "RandomSource",
    "PlannedRound",
    "RoundPlanner",
    "RoundResult",
    "AsyncioScheduler",
    "ManualScheduler",
    "Settings",
]
