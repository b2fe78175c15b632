from memory_match.models import PerformanceMetrics, RoundSummary
from memory_match.rewards import RewardCalculator


def _summary(level=1, score=0, remaining=0, accuracy=0.0):
    metrics = PerformanceMetrics(
        avg_match_time=2.0,
        accuracy_rate=accuracy,
        combo_frequency=0.5,
        speed_score=80.0,
        difficulty_score=level * 20,
        performance_score=70.0,
    )
    return RoundSummary(
        difficulty_level=level,
        score=score,
        matched_pairs=8,
        total_pairs=8,
        time_taken=120,
        time_remaining=remaining,
        max_combo=4,
        is_won=True,
        performance_metrics=metrics,
    )


def test_reward_points_example():
    calc = RewardCalculator()
    # floor(500 * 1.5 + 2 * 60 + 100 * 0.8)
    assert calc.reward_points(level=2, score=500, time_remaining=60, accuracy=0.8) == 950


def test_reward_points_floors_fractions():
    calc = RewardCalculator()
    # 101 * 1.5 = 151.5 -> 151 + 0 + 33.3
    assert calc.reward_points(level=2, score=101, time_remaining=0, accuracy=0.333) == 184


def test_reward_points_never_negative():
    assert RewardCalculator().reward_points(1, 0, 0, 0.0) == 0


def test_reward_points_monotonic_in_each_input():
    calc = RewardCalculator()
    for level in (1, 3, 7):
        scores = [calc.reward_points(level, s, 30, 0.5) for s in range(0, 2000, 37)]
        assert scores == sorted(scores)
        times = [calc.reward_points(level, 400, t, 0.5) for t in range(0, 181, 7)]
        assert times == sorted(times)
        accuracies = [calc.reward_points(level, 400, 30, a / 20) for a in range(0, 21)]
        assert accuracies == sorted(accuracies)


def test_evaluate_combines_points_and_unlock():
    calc = RewardCalculator()
    reward = calc.evaluate(_summary(level=1, score=900, remaining=90, accuracy=1.0))
    assert reward.points == 900 + 180 + 100
    assert reward.unlocked_next_level is True

    reward = calc.evaluate(_summary(level=1, score=50, remaining=90, accuracy=1.0))
    assert reward.unlocked_next_level is False
