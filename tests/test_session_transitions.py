import pytest

from memory_match.engine.state import (
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
from memory_match.settings import ScoringSettings


def fresh_state(pairs=2, seconds=60, level=1):
    cards = []
    for i in range(pairs):
        cards.append(Card(id=f"p{i}a", pair_id=f"p{i}", content_ref=i))
        cards.append(Card(id=f"p{i}b", pair_id=f"p{i}", content_ref=i))
    return SessionState(
        session_id="t",
        difficulty_level=level,
        cards=tuple(cards),
        total_pairs=pairs,
        seconds_remaining=seconds,
    )


def test_match_score_rules():
    rules = ScoringSettings()
    assert match_score(1, 5.0, 1, rules) == 100
    assert match_score(2, 5.0, 1, rules) == 150
    assert match_score(3, 5.0, 1, rules) == 225
    assert match_score(1, 0.0, 1, rules) == 130
    assert match_score(1, 1.25, 1, rules) == 118  # 117.5 rounds half up
    assert match_score(1, 5.0, 3, rules) == 200


def test_first_flip_only_remembers_card():
    s0 = fresh_state()
    s1 = transition(s0, FlipCard("p0a", at=1.0))
    assert s1.card("p0a").face is CardFace.FLIPPED
    assert s1.pending == ("p0a",)
    assert s1.flip_locked is False
    assert s0.card("p0a").face is CardFace.HIDDEN  # input untouched


def test_match_updates_counters_and_releases_lock():
    s = transition(fresh_state(), FlipCard("p0a", at=4.0))
    s = transition(s, FlipCard("p0b", at=4.0))
    assert s.card("p0a").face is CardFace.MATCHED
    assert s.card("p0b").matched and s.card("p0b").flipped
    assert (s.matched_pairs, s.combo, s.max_combo, s.score) == (1, 1, 1, 100)
    assert s.pending == () and s.flip_locked is False
    assert s.match_times == (4.0,)
    assert s.last_match_at == 4.0


def test_last_pair_wins_on_the_same_event():
    s = fresh_state(pairs=1)
    s = transition(s, FlipCard("p0a", at=9.0))
    s = transition(s, FlipCard("p0b", at=9.0))
    assert s.is_over is True
    assert s.is_won is True


def test_mismatch_locks_until_conceal_of_current_generation():
    s = transition(fresh_state(), FlipCard("p0a", at=9.0))
    s = transition(s, FlipCard("p0b", at=9.0))
    s = transition(s, FlipCard("p1a", at=9.5))
    s = transition(s, FlipCard("p0a", at=9.5))  # already matched: no-op
    s = transition(s, FlipCard("p1b", at=9.5))
    assert s.combo == 2
    s2 = transition(fresh_state(), FlipCard("p0a", at=1.0))
    s2 = transition(s2, FlipCard("p1a", at=1.0))
    assert s2.combo == 0
    assert s2.flip_locked and s2.awaiting_conceal
    assert s2.generation == 1

    assert transition(s2, FlipCard("p1b", at=1.5)) is s2
    assert transition(s2, ConcealMismatch(generation=0)) is s2

    s3 = transition(s2, ConcealMismatch(generation=1))
    assert s3.card("p0a").face is CardFace.HIDDEN
    assert s3.card("p1a").face is CardFace.HIDDEN
    assert s3.pending == () and s3.flip_locked is False
    assert s3.matched_pairs == 0


def test_mismatch_resets_combo():
    s = fresh_state(pairs=3)
    for a, b in (("p0a", "p0b"), ("p1a", "p2a")):
        s = transition(s, FlipCard(a, at=5.0))
        s = transition(s, FlipCard(b, at=5.0))
    assert s.max_combo == 1
    assert s.combo == 0


def test_invalid_flips_return_the_same_object():
    s = fresh_state()
    assert transition(s, FlipCard("nope", at=0.0)) is s
    s1 = transition(s, FlipCard("p0a", at=0.0))
    assert transition(s1, FlipCard("p0a", at=0.0)) is s1


def test_tick_counts_down_and_times_out():
    s = fresh_state(seconds=2)
    s = transition(s, Tick())
    assert (s.seconds_remaining, s.seconds_elapsed, s.is_over) == (1, 1, False)
    s = transition(s, Tick())
    assert (s.seconds_remaining, s.is_over, s.is_won) == (0, True, False)
    assert transition(s, Tick()) is s
    assert transition(s, FlipCard("p0a", at=3.0)) is s


def test_pause_blocks_ticks_and_flips():
    s = transition(fresh_state(), Pause())
    assert s.is_paused
    assert transition(s, Pause()) is s
    assert transition(s, Tick()) is s
    assert transition(s, FlipCard("p0a", at=1.0)) is s
    resumed = transition(s, Resume(at=42.0))
    assert resumed.is_paused is False
    assert resumed.last_match_at == 42.0


def test_resume_without_pause_is_noop():
    s = fresh_state()
    assert transition(s, Resume(at=3.0)) is s


def test_unknown_event_is_rejected():
    with pytest.raises(TypeError):
        transition(fresh_state(), object())
