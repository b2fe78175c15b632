from __future__ import annotations

import logging
import uuid
from statistics import fmean
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from ..difficulty import RoundConfig
from ..errors import InsufficientContentError, InvalidGridError
from ..events import EventBus, RoundEnded, StateChanged
from ..models import GridSize, PerformanceMetrics, RoundSummary
from ..rng import RandomSource
from ..scheduling import ManualScheduler, ScheduledTask, Scheduler
from ..settings import Settings
from .state import Card, ConcealMismatch, Event, FlipCard, Pause, Resume, SessionState, Tick, transition

logger = logging.getLogger(__name__)

TICK_TASK = "tick"
CONCEAL_TASK = "conceal"

GridLike = Union[GridSize, Tuple[int, int]]


class CardMatchEngine:
    """Live matching session.

    Holds the current SessionState and replaces it on every event via the pure
    ``transition`` function. Timed work (the countdown tick and the delayed
    conceal after a mismatch) goes through a Scheduler under this session's id,
    so ``destroy()`` can cancel all of it at once.

    Observers subscribe to ``engine.events`` (StateChanged, RoundEnded); the
    optional ``on_state_change`` callback is registered as a StateChanged
    subscriber receiving the new state.
    """

    def __init__(
        self,
        items: Sequence[Any],
        grid: GridLike,
        time_limit: int,
        difficulty_level: int = 1,
        on_state_change: Optional[Callable[[SessionState], None]] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[RandomSource] = None,
        settings: Optional[Settings] = None,
        session_id: Optional[str] = None,
        events: Optional[EventBus] = None,
    ) -> None:
        self.grid = GridSize(*grid)
        if self.grid.rows < 1 or self.grid.cols < 1 or self.grid.cells % 2:
            raise InvalidGridError(f"Grid {self.grid.rows}x{self.grid.cols} cannot hold whole pairs")
        self.pair_count = self.grid.cells // 2
        if len(items) < self.pair_count:
            raise InsufficientContentError(
                f"Round needs {self.pair_count} playable items, got {len(items)}"
            )
        if time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {time_limit}")

        self.items = list(items[: self.pair_count])
        self.time_limit = int(time_limit)
        self.difficulty_level = int(difficulty_level)
        self.session_id = session_id or uuid.uuid4().hex
        self.settings = settings or Settings()
        self.scheduler: Scheduler = scheduler or ManualScheduler()
        self.rng = rng or RandomSource()
        self.events = events or EventBus()
        self._timer_started = False
        self._tick_task: Optional[ScheduledTask] = None
        # Part of the current tick interval still owed when the clock was paused
        self._tick_remaining: Optional[float] = None

        if on_state_change is not None:
            self.events.subscribe(StateChanged, lambda e: on_state_change(e.state))

        self._state = self._deal()
        logger.info(
            "Session %s created: level=%d pairs=%d grid=%dx%d time_limit=%ds",
            self.session_id,
            self.difficulty_level,
            self.pair_count,
            self.grid.rows,
            self.grid.cols,
            self.time_limit,
        )

    @classmethod
    def from_config(cls, items: Sequence[Any], config: RoundConfig, **kwargs: Any) -> "CardMatchEngine":
        return cls(items, config.grid, config.time_limit_seconds, config.level, **kwargs)

    def _deal(self) -> SessionState:
        cards: List[Card] = []
        for index, item in enumerate(self.items):
            pair_id = f"pair-{index}"
            cards.append(Card(id=f"{pair_id}-a", pair_id=pair_id, content_ref=item))
            cards.append(Card(id=f"{pair_id}-b", pair_id=pair_id, content_ref=item))
        return SessionState(
            session_id=self.session_id,
            difficulty_level=self.difficulty_level,
            cards=tuple(self.rng.shuffled(cards)),
            total_pairs=self.pair_count,
            seconds_remaining=self.time_limit,
            last_match_at=self.scheduler.now(),
        )

    # --------------- Public API ---------------

    @property
    def state(self) -> SessionState:
        return self._state

    def get_state(self) -> SessionState:
        """Current snapshot; SessionState is immutable so it is safe to hand out."""
        return self._state

    def flip(self, card_id: str) -> SessionState:
        before = self._state
        after = self._dispatch(FlipCard(card_id, self.scheduler.now()))
        if after.awaiting_conceal and not before.awaiting_conceal:
            generation = after.generation
            self.scheduler.call_later(
                self.settings.timing.mismatch_delay_seconds,
                lambda: self._dispatch(ConcealMismatch(generation)),
                key=(self.session_id, CONCEAL_TASK),
            )
        return after

    def start_timer(self) -> None:
        if self._state.is_over:
            logger.debug("start_timer() ignored; session %s is over", self.session_id)
            return
        self._timer_started = True
        self._tick_remaining = None
        if not self._state.is_paused:
            self._schedule_tick()
        logger.info("Session %s timer started (%ds)", self.session_id, self._state.seconds_remaining)

    def pause_game(self) -> SessionState:
        """Freeze the countdown, keeping the unfinished part of the current second."""
        was_paused = self._state.is_paused
        state = self._dispatch(Pause())
        if state.is_paused and not was_paused:
            task = self._tick_task
            if task is not None and not task.cancelled:
                self._tick_remaining = max(0.0, task.due - self.scheduler.now())
                logger.debug("Session %s paused %.3fs before the next tick", self.session_id, self._tick_remaining)
            self.scheduler.cancel((self.session_id, TICK_TASK))
            self._tick_task = None
        return state

    def resume_game(self) -> SessionState:
        was_paused = self._state.is_paused
        state = self._dispatch(Resume(self.scheduler.now()))
        if was_paused and not state.is_paused and self._timer_started:
            remaining = self._tick_remaining
            self._tick_remaining = None
            if remaining is None:
                self._schedule_tick()
            else:
                self._tick_task = self.scheduler.call_later(
                    remaining, self._resumed_tick, key=(self.session_id, TICK_TASK)
                )
        return state

    def destroy(self) -> None:
        """Cancel the tick and any pending conceal. Safe to call repeatedly."""
        cancelled = self.scheduler.cancel_session(self.session_id)
        self._timer_started = False
        self._tick_task = None
        self._tick_remaining = None
        if cancelled:
            logger.info("Session %s destroyed; cancelled %d scheduled task(s)", self.session_id, cancelled)

    def reset(self) -> SessionState:
        """Discard the current round and deal a fresh one with the same items."""
        self.destroy()
        self._state = self._deal()
        logger.info("Session %s reset", self.session_id)
        self.events.emit(StateChanged(self._state))
        return self._state

    def performance_metrics(self) -> PerformanceMetrics:
        state = self._state
        avg_match_time = fmean(state.match_times) if state.match_times else 0.0
        accuracy = state.matched_pairs / state.total_pairs if state.total_pairs else 0.0
        combo_frequency = state.max_combo / max(state.matched_pairs, 1)
        speed_score = max(0.0, 100 - avg_match_time * 10)
        performance = (speed_score + accuracy * 100 + combo_frequency * 100) / 3
        return PerformanceMetrics(
            avg_match_time=avg_match_time,
            accuracy_rate=accuracy,
            combo_frequency=combo_frequency,
            speed_score=speed_score,
            difficulty_score=self.difficulty_level * 20,
            performance_score=performance,
        )

    def summary(self) -> RoundSummary:
        state = self._state
        return RoundSummary(
            difficulty_level=self.difficulty_level,
            score=state.score,
            matched_pairs=state.matched_pairs,
            total_pairs=state.total_pairs,
            time_taken=state.seconds_elapsed,
            time_remaining=state.seconds_remaining,
            max_combo=state.max_combo,
            is_won=state.is_won,
            performance_metrics=self.performance_metrics(),
        )

    # --------------- Internals ---------------

    def _schedule_tick(self) -> None:
        self._tick_task = self.scheduler.call_every(
            self.settings.timing.tick_seconds,
            lambda: self._dispatch(Tick()),
            key=(self.session_id, TICK_TASK),
        )

    def _resumed_tick(self) -> None:
        # One-shot finishing the interval interrupted by a pause; the regular
        # repeating tick takes over from here.
        self._tick_task = None
        state = self._dispatch(Tick())
        if self._timer_started and not state.is_over and not state.is_paused:
            self._schedule_tick()

    def _dispatch(self, event: Event) -> SessionState:
        before = self._state
        after = transition(before, event, self.settings.scoring)
        if after is before:
            return before
        self._state = after
        self.events.emit(StateChanged(after))
        if after.is_over and not before.is_over:
            self.destroy()
            logger.info(
                "Session %s over: won=%s score=%d pairs=%d/%d elapsed=%ds",
                self.session_id,
                after.is_won,
                after.score,
                after.matched_pairs,
                after.total_pairs,
                after.seconds_elapsed,
            )
            self.events.emit(RoundEnded(after))
        return after
