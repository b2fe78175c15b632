from .match_engine import CardMatchEngine
from .state import (
    Card,
    CardFace,
    ConcealMismatch,
    FlipCard,
    Pause,
    Resume,
    SessionState,
    Tick,
    match_score,
    transition,
)

__all__ = [
    "CardMatchEngine",
    "Card",
    "CardFace",
    "SessionState",
    "FlipCard",
    "Tick",
    "Pause",
    "Resume",
    "ConcealMismatch",
    "match_score",
    "transition",
]
