"""Immutable session state and the pure transition function.

``transition(state, event, rules)`` never mutates its input; it returns the
same object when the event is a no-op and a new SessionState otherwise. The
engine wrapper relies on that identity check to decide whether to publish.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple, Union

from ..difficulty import DifficultyCurve
from ..settings import ScoringSettings

logger = logging.getLogger(__name__)


class CardFace(str, Enum):
    HIDDEN = "hidden"
    FLIPPED = "flipped"
    MATCHED = "matched"


@dataclass(frozen=True)
class Card:
    id: str
    pair_id: str
    content_ref: Any
    flipped: bool = False
    matched: bool = False

    @property
    def face(self) -> CardFace:
        if self.matched:
            return CardFace.MATCHED
        return CardFace.FLIPPED if self.flipped else CardFace.HIDDEN


@dataclass(frozen=True)
class SessionState:
    """Snapshot of a session. Replaced wholesale on every transition."""

    session_id: str
    difficulty_level: int
    cards: Tuple[Card, ...]
    total_pairs: int
    seconds_remaining: int
    matched_pairs: int = 0
    seconds_elapsed: int = 0
    score: int = 0
    combo: int = 0
    max_combo: int = 0
    is_paused: bool = False
    is_over: bool = False
    is_won: bool = False
    # Matching protocol bookkeeping
    pending: Tuple[str, ...] = ()
    flip_locked: bool = False
    match_times: Tuple[float, ...] = ()
    last_match_at: float = 0.0
    generation: int = 0

    @property
    def awaiting_conceal(self) -> bool:
        """True while a mismatched pair is face up and the flip lock is held."""
        return self.flip_locked and len(self.pending) == 2 and not self.is_over

    def card(self, card_id: str) -> Optional[Card]:
        for c in self.cards:
            if c.id == card_id:
                return c
        return None


# --------------- Events ---------------


@dataclass(frozen=True)
class FlipCard:
    card_id: str
    at: float


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    at: float


@dataclass(frozen=True)
class ConcealMismatch:
    generation: int


Event = Union[FlipCard, Tick, Pause, Resume, ConcealMismatch]


# --------------- Scoring ---------------


def match_score(combo: int, match_seconds: float, level: int, rules: ScoringSettings) -> int:
    """Points for one match: combo growth, quick-match bonus, level multiplier, rounded half up."""
    points = float(rules.base_match_score)
    if combo > 1:
        points *= rules.combo_multiplier ** (combo - 1)
    if match_seconds < rules.quick_match_seconds:
        points += rules.time_bonus_per_second * (rules.quick_match_seconds - match_seconds)
    points *= DifficultyCurve.score_multiplier(level)
    return int(math.floor(points + 0.5))


# --------------- Transitions ---------------


def _set_cards(cards: Tuple[Card, ...], ids: Tuple[str, ...], **changes: Any) -> Tuple[Card, ...]:
    return tuple(replace(c, **changes) if c.id in ids else c for c in cards)


def _flip(state: SessionState, event: FlipCard, rules: ScoringSettings) -> SessionState:
    if state.is_paused or state.is_over or state.flip_locked:
        return state
    card = state.card(event.card_id)
    if card is None or card.flipped or card.matched:
        return state

    cards = _set_cards(state.cards, (card.id,), flipped=True)
    if not state.pending:
        return replace(state, cards=cards, pending=(card.id,))

    first = state.card(state.pending[0])
    pair = (state.pending[0], card.id)
    if first is not None and first.pair_id == card.pair_id:
        return _match(state, cards, pair, event.at, rules)

    logger.debug("Mismatch %s / %s; combo reset from %d", pair[0], pair[1], state.combo)
    return replace(
        state,
        cards=cards,
        pending=pair,
        flip_locked=True,
        combo=0,
        generation=state.generation + 1,
    )


def _match(state: SessionState, cards: Tuple[Card, ...], pair: Tuple[str, str], at: float, rules: ScoringSettings) -> SessionState:
    combo = state.combo + 1
    match_seconds = max(0.0, at - state.last_match_at)
    gained = match_score(combo, match_seconds, state.difficulty_level, rules)
    matched_pairs = state.matched_pairs + 1
    won = matched_pairs == state.total_pairs
    logger.debug(
        "Match %s / %s in %.2fs: combo=%d +%d points (%d/%d pairs)",
        pair[0],
        pair[1],
        match_seconds,
        combo,
        gained,
        matched_pairs,
        state.total_pairs,
    )
    return replace(
        state,
        cards=_set_cards(cards, pair, flipped=True, matched=True),
        matched_pairs=matched_pairs,
        combo=combo,
        max_combo=max(state.max_combo, combo),
        match_times=state.match_times + (match_seconds,),
        last_match_at=at,
        score=state.score + gained,
        pending=(),
        flip_locked=False,
        is_over=won,
        is_won=won,
    )


def _tick(state: SessionState) -> SessionState:
    if state.is_paused or state.is_over:
        return state
    remaining = max(0, state.seconds_remaining - 1)
    timed_out = remaining == 0
    if timed_out:
        logger.debug("Time exhausted with %d/%d pairs matched", state.matched_pairs, state.total_pairs)
    return replace(
        state,
        seconds_remaining=remaining,
        seconds_elapsed=state.seconds_elapsed + 1,
        is_over=timed_out,
        is_won=False,
    )


def _conceal(state: SessionState, event: ConcealMismatch) -> SessionState:
    if state.is_over or not state.awaiting_conceal or event.generation != state.generation:
        return state
    hidden = tuple(
        replace(c, flipped=False) if c.id in state.pending and not c.matched else c for c in state.cards
    )
    return replace(state, cards=hidden, pending=(), flip_locked=False)


def transition(state: SessionState, event: Event, rules: Optional[ScoringSettings] = None) -> SessionState:
    """Apply one event to a session snapshot."""
    rules = rules or ScoringSettings()
    if isinstance(event, FlipCard):
        return _flip(state, event, rules)
    if isinstance(event, Tick):
        return _tick(state)
    if isinstance(event, ConcealMismatch):
        return _conceal(state, event)
    if isinstance(event, Pause):
        if state.is_paused or state.is_over:
            return state
        return replace(state, is_paused=True)
    if isinstance(event, Resume):
        if not state.is_paused or state.is_over:
            return state
        return replace(state, is_paused=False, last_match_at=event.at)
    raise TypeError(f"Unknown session event: {event!r}")


__all__ = [
    "Card",
    "CardFace",
    "SessionState",
    "FlipCard",
    "Tick",
    "Pause",
    "Resume",
    "ConcealMismatch",
    "Event",
    "match_score",
    "transition",
]
