"""Configuration, logging, rate limiting and embed rendering tests."""

import logging
from pathlib import Path

import pytest

from league.config import Config
from league.database.models import MatchStatus
from league.data_models.leaderboard import AnnotatedPlayer, LeaderboardPage
from league.data_models.player import PlayerProfile
from league.services.base import BaseService
from league.services.rate_limiter import SimpleRateLimiter
from league.utils.embeds import build_leaderboard_embed, format_movement
from league.utils.error_embeds import ErrorEmbeds
from league.utils.exceptions import ConcurrencyError, InvalidStateError, MatchNotFoundError
from league.utils.logger import setup_logger


# =============================================================================
# Config
# =============================================================================

def test_database_url_uses_async_driver(monkeypatch):
    monkeypatch.setattr(Config, "DATABASE_URL", "sqlite:///league.db")
    assert Config.get_database_url() == "sqlite+aiosqlite:///league.db"

    monkeypatch.setattr(Config, "DATABASE_URL", "sqlite+aiosqlite:///other.db")
    assert Config.get_database_url() == "sqlite+aiosqlite:///other.db"


def test_guild_ids(monkeypatch):
    monkeypatch.setattr(Config, "DISCORD_GUILD_IDS", "1, 2,3")
    assert Config.get_guild_ids() == [1, 2, 3]

    monkeypatch.setattr(Config, "DISCORD_GUILD_IDS", "")
    monkeypatch.setattr(Config, "DISCORD_GUILD_ID", 42)
    assert Config.get_guild_ids() == [42]

    monkeypatch.setattr(Config, "DISCORD_GUILD_IDS", "1,abc")
    with pytest.raises(ValueError):
        Config.get_guild_ids()


def test_validate(monkeypatch):
    monkeypatch.setattr(Config, "DISCORD_TOKEN", "token")
    monkeypatch.setattr(Config, "DISCORD_GUILD_ID", 42)
    monkeypatch.setattr(Config, "OWNER_DISCORD_ID", 7)
    monkeypatch.setattr(Config, "REPORT_MAX_RETRIES", 3)
    Config.validate()

    monkeypatch.setattr(Config, "REPORT_MAX_RETRIES", 0)
    with pytest.raises(ValueError):
        Config.validate()

    monkeypatch.setattr(Config, "DISCORD_TOKEN", None)
    with pytest.raises(ValueError):
        Config.validate()


# =============================================================================
# Rate limiter
# =============================================================================

async def test_rate_limiter_window():
    limiter = SimpleRateLimiter()

    assert await limiter.is_allowed(1, "report-result", limit=2, window=60)
    assert await limiter.is_allowed(1, "report-result", limit=2, window=60)
    assert not await limiter.is_allowed(1, "report-result", limit=2, window=60)
    # Other users and commands have their own budget
    assert await limiter.is_allowed(2, "report-result", limit=2, window=60)
    assert await limiter.is_allowed(1, "leaderboard", limit=2, window=60)

    limiter.reset(1)
    assert await limiter.is_allowed(1, "report-result", limit=2, window=60)


async def test_rate_limiter_rejects_bad_limits():
    limiter = SimpleRateLimiter()
    assert not await limiter.is_allowed(1, "x", limit=0, window=60)
    assert not await limiter.is_allowed(1, "x", limit=1, window=0)


# =============================================================================
# Embeds
# =============================================================================

def _entry(position, name, rank, previous_rank, player_id):
    profile = PlayerProfile(
        player_id=player_id, name=name, school_email=f"{name.lower()}@school.edu",
        personal_email=None, phone=None, wins=2, losses=1, rank=rank,
        previous_rank=previous_rank, is_admin=False
    )
    return AnnotatedPlayer(position=position, player=profile, position_delta=previous_rank - rank)


def test_format_movement():
    assert format_movement(_entry(1, "A", 1, 3, 1)) == "▲2"
    assert format_movement(_entry(1, "A", 3, 1, 1)) == "▼2"
    assert format_movement(_entry(1, "A", 2, 2, 1)) == "-"


def test_leaderboard_embed_marks_viewer():
    page = LeaderboardPage(
        entries=[_entry(1, "Alice", 1, 2, 10), _entry(2, "Bob", 2, 1, 20)],
        current_page=1,
        total_pages=1,
        total_players=2
    )

    embed = build_leaderboard_embed(page, viewer_id=20)

    bob_line = next(line for line in embed.description.splitlines() if "Bob" in line)
    alice_line = next(line for line in embed.description.splitlines() if "Alice" in line)
    assert bob_line.startswith("→")
    assert "▼1" in bob_line
    assert not alice_line.startswith("→")
    assert "▲1" in alice_line
    assert "Alice" in embed.fields[0].value
    assert embed.footer.text == "Page 1/1 | Total Players: 2"


def test_error_embed_uses_user_message():
    embed = ErrorEmbeds.from_error(MatchNotFoundError(12))
    assert embed.title == "Not Found"
    assert embed.description == "❌ Match #12 does not exist."

    embed = ErrorEmbeds.from_error(InvalidStateError(3, MatchStatus.COMPLETED))
    assert "already completed" in embed.description

    embed = ErrorEmbeds.from_error(ConcurrencyError("report_result", 3))
    assert embed.title == "Please Try Again"


# =============================================================================
# Logging and retries
# =============================================================================

def test_logger_writes_under_log_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, "LOG_DIR", str(tmp_path / "logs"))

    logger = setup_logger("league.tests.log_dir")
    try:
        assert setup_logger("league.tests.log_dir") is logger
        assert len(logger.handlers) == 2
        file_handler = next(h for h in logger.handlers if isinstance(h, logging.FileHandler))
        assert Path(file_handler.baseFilename).parent == tmp_path / "logs"
        assert Path(file_handler.baseFilename).name.startswith("league_bot_")
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


async def test_execute_with_retry_only_retries_listed_errors():
    service = BaseService(session_factory=None)
    calls = []

    async def fails_once():
        calls.append(1)
        if len(calls) == 1:
            raise KeyError("first")
        return "done"

    assert await service.execute_with_retry(fails_once, max_retries=2, retry_on=(KeyError,)) == "done"
    assert len(calls) == 2

    async def wrong_error():
        calls.append(1)
        raise RuntimeError("not retried")

    calls.clear()
    with pytest.raises(RuntimeError):
        await service.execute_with_retry(wrong_error, max_retries=3, retry_on=(KeyError,))
    assert len(calls) == 1

    with pytest.raises(ValueError):
        await service.execute_with_retry(fails_once, max_retries=0)
