import random

import pytest

from memory_match.models import PerformanceRecord, PlayerCategory
from memory_match.performance import (
    NEED_MORE_DATA,
    TIP_ACCURACY,
    TIP_COMBO,
    TIP_DEFAULT,
    TIP_SLOW,
    PerformanceAdapter,
    Trend,
)
from memory_match.settings import AdapterSettings


def rec(level=1, match_time=3.0, accuracy=0.8, combo=0.5, score=70.0):
    return PerformanceRecord(
        difficulty_level=level,
        average_match_time_seconds=match_time,
        accuracy_rate=accuracy,
        combo_frequency=combo,
        performance_score=score,
    )


def strong(level):
    return rec(level=level, match_time=1.5, accuracy=0.95, combo=0.8, score=95)


def weak(level):
    return rec(level=level, match_time=8.0, accuracy=0.3, combo=0.1, score=20)


def test_empty_history_uses_category_default():
    adapter = PerformanceAdapter()
    assert adapter.recommend_level([], "child") == 1
    assert adapter.recommend_level([], PlayerCategory.TEEN) == 2
    assert adapter.recommend_level([], "adult") == 2


def test_strong_unrestricted_player_reaches_top_level():
    history = [strong(5) for _ in range(10)]
    assert PerformanceAdapter().recommend_level(history, "adult") == 5


def test_top_tier_needs_all_three_conditions():
    adapter = PerformanceAdapter()
    # great score and accuracy but slow matches: tier 5 and 4 fail on speed, tier 3 holds
    slow = [rec(level=4, match_time=3.5, accuracy=0.95, score=95) for _ in range(5)]
    assert adapter.raw_level(slow) == 3


def test_category_ceiling():
    history = [strong(3) for _ in range(10)]
    assert PerformanceAdapter().recommend_level(history, "child") == 3
    history = [strong(4) for _ in range(10)]
    assert PerformanceAdapter().recommend_level(history, "teen") == 4


def test_progression_moves_one_step_at_a_time():
    adapter = PerformanceAdapter()
    assert adapter.recommend_level([strong(1) for _ in range(10)], "adult") == 2
    assert adapter.recommend_level([weak(5) for _ in range(10)], "adult") == 4


def test_only_recent_window_counts():
    adapter = PerformanceAdapter()
    history = [strong(5) for _ in range(10)] + [weak(1) for _ in range(20)]
    assert adapter.recommend_level(history, "adult") == 5

    narrow = PerformanceAdapter(AdapterSettings(history_window=2))
    assert narrow.recommend_level([strong(5), strong(5), weak(5)], "adult") == 5


def test_unknown_category_is_treated_as_most_restricted():
    history = [strong(3) for _ in range(10)]
    assert PerformanceAdapter().recommend_level(history, "toddler") == 3


def test_recommendation_stays_near_last_level_and_in_range():
    adapter = PerformanceAdapter()
    r = random.Random(1234)
    for _ in range(300):
        history = [
            rec(
                level=r.randint(1, 5),
                match_time=r.uniform(0.5, 9.0),
                accuracy=r.random(),
                combo=r.random(),
                score=r.uniform(0, 100),
            )
            for _ in range(r.randint(1, 12))
        ]
        category = r.choice(list(PlayerCategory))
        level = adapter.recommend_level(history, category)
        assert 1 <= level <= 5
        assert abs(level - history[0].difficulty_level) <= 1


def test_config_for_history_resolves_curve():
    cfg = PerformanceAdapter().config_for_history([], "teen")
    assert cfg.level == 2
    assert cfg.pair_count == 12


def test_trend_needs_three_records():
    analysis = PerformanceAdapter().analyze_trend([rec(), rec()])
    assert analysis.trend is Trend.STABLE
    assert analysis.recommendation == NEED_MORE_DATA
    assert analysis.is_improving is False


def test_trend_with_exactly_three_records_is_stable():
    assert PerformanceAdapter().analyze_trend([rec(), rec(), rec()]).trend is Trend.STABLE


@pytest.mark.parametrize(
    "recent, older, expected",
    [
        (80, 60, Trend.UP),
        (60, 80, Trend.DOWN),
        (75, 70, Trend.STABLE),
        (70, 60, Trend.STABLE),  # exactly +10 is not enough
    ],
)
def test_trend_compares_recent_three_with_next_three(recent, older, expected):
    history = [rec(score=recent)] * 3 + [rec(score=older)] * 3 + [rec(score=0)] * 4
    analysis = PerformanceAdapter().analyze_trend(history)
    assert analysis.trend is expected
    assert analysis.is_improving is (expected is Trend.UP)


def test_trend_with_short_older_window():
    history = [rec(score=90)] * 3 + [rec(score=50)]
    assert PerformanceAdapter().analyze_trend(history).trend is Trend.UP


def test_tips_are_ordered_and_independent():
    tips = PerformanceAdapter.tips_for(rec(match_time=6, accuracy=0.5, combo=0.1))
    assert tips == [TIP_SLOW, TIP_ACCURACY, TIP_COMBO]
    assert PerformanceAdapter.tips_for(rec(match_time=2, accuracy=0.5, combo=0.9)) == [TIP_ACCURACY]
    assert PerformanceAdapter.tips_for(rec(match_time=2, accuracy=0.9, combo=0.9)) == [TIP_DEFAULT]
    assert PerformanceAdapter.tips_for(None) == []


def test_weighted_performance_score():
    # 80 * 0.3 + 100 * 0.4 + 50 * 0.2 + 10 * 0.1
    assert PerformanceAdapter.weighted_performance_score(2.0, 1.0, 0.5, 30, 60) == 75


def test_records_accept_persistence_keys():
    record = PerformanceRecord.model_validate(
        {
            "difficulty_level": 2,
            "avg_match_time": 2.5,
            "accuracy_rate": 0.9,
            "combo_frequency": 0.4,
            "performance_score": 81,
        }
    )
    assert record.average_match_time_seconds == 2.5


def test_records_are_validated():
    with pytest.raises(ValueError):
        rec(accuracy=1.5)
    with pytest.raises(ValueError):
        rec(score=120)
