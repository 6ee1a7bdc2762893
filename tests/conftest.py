"""Shared test fixtures."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from league.database.database import Database
from league.database.match_operations import MatchOperations
from league.operations.player_operations import PlayerOperations
from league.operations.admin_operations import AdminOperations
from league.services.confirmation import ConfirmationEngine
from league.services.leaderboard import LeaderboardService
from league.services.match_history_service import MatchHistoryService
from league.services.standings import StandingsUpdater


# Seeded in rank order: Zed is 1st, Alice 2nd ... Bob 5th
SEED_PLAYERS = [
    ("Zed", "zed@school.edu"),
    ("Alice", "alice@school.edu"),
    ("Xena", "xena@school.edu"),
    ("Yuri", "yuri@school.edu"),
    ("Bob", "bob@school.edu"),
]


@pytest.fixture
async def db(tmp_path):
    """File-backed SQLite database with all tables created."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'league.db'}")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def standings():
    return StandingsUpdater()


@pytest.fixture
def player_ops(db):
    return PlayerOperations(db)


@pytest.fixture
def match_ops(db):
    return MatchOperations(db)


@pytest.fixture
def admin_ops(db, player_ops, match_ops, standings):
    return AdminOperations(db, player_ops, match_ops, standings)


@pytest.fixture
def engine(db, standings):
    return ConfirmationEngine(db.session_factory, standings, max_retries=3)


@pytest.fixture
def leaderboard_service(db):
    return LeaderboardService(db.session_factory)


@pytest.fixture
def history_service(db):
    return MatchHistoryService(db.session_factory)


@pytest.fixture
async def players(player_ops):
    """Five players ranked 1..5, keyed by name."""
    created = {}
    for name, email in SEED_PLAYERS:
        created[name] = await player_ops.create_player(name=name, school_email=email, credential=f"{name.lower()}-pw")
    return SimpleNamespace(**created)


@pytest.fixture
async def match(match_ops, players):
    """Scheduled match between Alice (rank 2) and Bob (rank 5)."""
    return await match_ops.schedule_match(
        players.Alice.id, players.Bob.id, date_scheduled=datetime(2024, 9, 30, 18, 0), week="Week 1"
    )
