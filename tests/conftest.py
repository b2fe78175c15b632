import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from memory_match.engine import CardMatchEngine  # noqa: E402
from memory_match.rng import RandomSource  # noqa: E402
from memory_match.scheduling import ManualScheduler  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_user_settings(tmp_path, monkeypatch):
    # Keep a developer's real settings file out of the tests
    monkeypatch.setenv("MEMORY_MATCH_SETTINGS", str(tmp_path / "no-such-settings.yaml"))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_engine(scheduler):
    def _make(pairs=4, level=1, time_limit=180, seed=7, **kwargs):
        items = [f"item-{i}" for i in range(pairs)]
        kwargs.setdefault("scheduler", scheduler)
        kwargs.setdefault("rng", RandomSource(seed))
        kwargs.setdefault("session_id", "s1")
        return CardMatchEngine(items, (2, pairs), time_limit, level, **kwargs)

    return _make
