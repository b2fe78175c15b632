import io
import json
import logging

import pytest

from memory_match.cli import main
from memory_match.logging_config import configure_logging


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_levels(capsys):
    assert main(["levels", "--max-level", "6"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 6
    assert lines[0].startswith("L1")
    assert "pairs=8" in lines[0]
    assert "cards=16" in lines[0]
    assert "grid=7x8" in lines[5]


def test_reward(capsys):
    assert main(["reward", "--level", "2", "--score", "500", "--time-remaining", "60", "--accuracy", "0.8"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {"reward_points": 950, "unlocked_next_level": True}


def test_recommend_from_history_file(tmp_path, capsys):
    rows = [
        {
            "difficulty_level": 5,
            "avg_match_time": 1.5,
            "accuracy_rate": 0.95,
            "combo_frequency": 0.8,
            "performance_score": 95,
        }
    ] * 6
    path = tmp_path / "history.json"
    path.write_text(json.dumps(rows))
    assert main(["recommend", str(path), "--category", "teen"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["level"] == 4
    assert out["label"] == "Very Hard"
    assert out["trend"] == "stable"
    assert out["tips"] == ["You're doing great! Keep up the good work!"]


def test_simulate_is_deterministic(capsys):
    assert main(["simulate", "--level", "1", "--seed", "11"]) == 0
    first = json.loads(capsys.readouterr().out)
    assert main(["simulate", "--level", "1", "--seed", "11"]) == 0
    second = json.loads(capsys.readouterr().out)
    assert first == second
    assert first["is_won"] is True
    assert first["matched_pairs"] == 8


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        main(["bogus"])


def test_configure_logging_env_override(monkeypatch):
    monkeypatch.setenv("MEMORY_MATCH_LOG_LEVEL", "debug")
    stream = io.StringIO()
    handler = configure_logging(logging.WARNING, stream=stream)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger().handlers == [handler]
    logging.getLogger("memory_match.test").debug("hello")
    assert "[memory_match.test] hello" in stream.getvalue()


def test_logs_stay_off_stdout(capsys):
    assert main(["--debug", "reward", "--level", "1", "--score", "100", "--time-remaining", "60", "--accuracy", "1.0"]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out)["reward_points"] == 320
    assert "Reward computed" in captured.err
