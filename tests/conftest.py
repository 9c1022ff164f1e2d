"""Shared fixtures.

DATABASE_URL must point at SQLite before ``database`` is imported, so it is
set at module import time here.
"""
import os
import random
import tempfile

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="padel-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"

from tournament.models import Player, Team  # noqa: E402


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_players():
    def _make(n: int) -> list[Player]:
        return [Player(id=f"p{i:02d}", name=f"Player {i}") for i in range(1, n + 1)]
    return _make


@pytest.fixture
def make_teams():
    def _make(n: int) -> list[Team]:
        return [
            Team(id=f"t{i}", name=f"Team {i}", player_ids=(f"p{2 * i - 1:02d}", f"p{2 * i:02d}"))
            for i in range(1, n + 1)
        ]
    return _make


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as c:
        yield c
