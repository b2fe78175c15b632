from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .catalog import InMemoryCatalog
from .difficulty import DifficultyCurve
from .engine import CardMatchEngine
from .logging_config import configure_logging
from .models import PerformanceRecord, PlayerCategory
from .rewards import RewardCalculator
from .rng import RandomSource
from .rounds import RoundPlanner
from .scheduling import ManualScheduler
from .settings import Settings

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="memory-match",
        description="Memory match game core: difficulty curve, rewards and adaptive level tools",
    )
    parser.add_argument("--settings", dest="settings_path", type=Path, default=None, help="User settings YAML file.")
    parser.add_argument("--debug", action="store_true", help="Enable verbose debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    levels = sub.add_parser("levels", help="Print the round configuration for a range of levels.")
    levels.add_argument("--max-level", type=int, default=11)

    recommend = sub.add_parser("recommend", help="Recommend the next level from a JSON history file.")
    recommend.add_argument("history", type=Path, help="JSON list of performance records, most recent first.")
    recommend.add_argument("--category", default=PlayerCategory.ADULT.value, choices=[c.value for c in PlayerCategory])

    reward = sub.add_parser("reward", help="Compute reward points and unlock eligibility.")
    reward.add_argument("--level", type=int, required=True)
    reward.add_argument("--score", type=int, required=True)
    reward.add_argument("--time-remaining", type=int, required=True)
    reward.add_argument("--accuracy", type=float, required=True)

    simulate = sub.add_parser("simulate", help="Play one round with a perfect-memory bot.")
    simulate.add_argument("--level", type=int, default=1)
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--think-seconds", type=float, default=1.0, help="Virtual seconds the bot waits per flip.")
    return parser.parse_args(argv)


def _cmd_levels(args, settings: Settings) -> int:
    curve = DifficultyCurve()
    for level in range(1, args.max_level + 1):
        cfg = curve.config_for(level)
        print(
            f"L{cfg.level:<3} {curve.label(level):<11} pairs={cfg.pair_count:<3} cards={cfg.card_count:<3} grid={cfg.grid_rows}x{cfg.grid_cols:<3} "
            f"time={cfg.time_limit_seconds:<4}s similarity={cfg.similarity_threshold:.2f} "
            f"layout={cfg.layout.value:<9} win~{cfg.win_probability:.0%}"
        )
    return 0


def _cmd_recommend(args, settings: Settings) -> int:
    rows = json.loads(args.history.read_text(encoding="utf-8"))
    history = PerformanceRecord.many(rows)
    planner = RoundPlanner(settings)
    adapter = planner.advisor.adapter
    level = planner.advisor.recommend(history, args.category)
    trend = adapter.analyze_trend(history)
    out = {
        "level": level,
        "label": planner.curve.label(level),
        "trend": trend.trend.value,
        "recommendation": trend.recommendation,
        "tips": adapter.tips_for(history[0] if history else None),
    }
    print(json.dumps(out, indent=2))
    return 0


def _cmd_reward(args, settings: Settings) -> int:
    curve = DifficultyCurve()
    points = RewardCalculator(curve).reward_points(args.level, args.score, args.time_remaining, args.accuracy)
    unlocked = curve.unlock_eligible(args.level, args.score, args.time_remaining, args.accuracy)
    print(json.dumps({"reward_points": points, "unlocked_next_level": unlocked}, indent=2))
    return 0


def play_bot_round(engine: CardMatchEngine, scheduler: ManualScheduler, think_seconds: float = 1.0) -> None:
    """Drive a session to the end, flipping unseen cards and remembering every face."""
    seen: Dict[str, str] = {}  # card id -> pair id
    while not engine.state.is_over:
        state = engine.state
        if state.flip_locked:
            scheduler.advance(think_seconds)
            continue
        open_ids: List[str] = list(state.pending)
        target: Optional[str] = None
        if open_ids:
            pair_id = seen[open_ids[0]]
            target = next((cid for cid, pid in seen.items() if pid == pair_id and cid != open_ids[0]), None)
        else:
            known = {}
            for cid, pid in seen.items():
                card = state.card(cid)
                if card is not None and not card.matched:
                    known.setdefault(pid, []).append(cid)
            target = next((ids[0] for ids in known.values() if len(ids) == 2), None)
        if target is None:
            target = next(c.id for c in state.cards if not c.flipped and c.id not in seen)
        scheduler.advance(think_seconds)
        if engine.state.is_over:
            break
        after = engine.flip(target)
        flipped = after.card(target)
        if flipped is not None:
            seen[target] = flipped.pair_id


def _cmd_simulate(args, settings: Settings) -> int:
    curve = DifficultyCurve()
    config = curve.config_for(args.level)
    scheduler = ManualScheduler()
    rng = RandomSource(args.seed)
    catalog = InMemoryCatalog.generated(config.pair_count)
    planner = RoundPlanner(settings)
    engine = CardMatchEngine.from_config(catalog.items(), config, scheduler=scheduler, rng=rng, settings=settings)
    engine.start_timer()
    play_bot_round(engine, scheduler, args.think_seconds)
    result = planner.finish(engine)
    print(json.dumps(result.as_dict(), indent=2))
    return 0


_COMMANDS = {
    "levels": _cmd_levels,
    "recommend": _cmd_recommend,
    "reward": _cmd_reward,
    "simulate": _cmd_simulate,
}


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(level=logging.DEBUG if args.debug else logging.WARNING)
    settings = Settings.load(user_path=args.settings_path)
    return _COMMANDS[args.command](args, settings)
