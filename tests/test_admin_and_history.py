"""Admin workflow, dashboard and match history tests."""

from datetime import datetime

import pytest

from league.utils.exceptions import (
    LeagueValidationError, PermissionDeniedError, PlayerInUseError, PlayerNotFoundError
)


async def _complete(engine, match_id, winner_id, loser_id):
    await engine.report_result(match_id, winner_id, True)
    await engine.report_result(match_id, loser_id, False)


# =============================================================================
# Administration
# =============================================================================

async def test_require_admin(admin_ops, player_ops, players):
    with pytest.raises(PermissionDeniedError):
        await admin_ops.require_admin(players.Alice.id)
    with pytest.raises(PermissionDeniedError):
        await admin_ops.require_admin(9999)

    await player_ops.update_player(players.Alice.id, is_admin=True)
    assert (await admin_ops.require_admin(players.Alice.id)).id == players.Alice.id


async def test_current_week(admin_ops):
    assert await admin_ops.get_current_week() is None

    await admin_ops.set_current_week(" Week 3 ")
    assert await admin_ops.get_current_week() == "Week 3"

    with pytest.raises(LeagueValidationError):
        await admin_ops.set_current_week("   ")


async def test_start_new_week_resets_movement(admin_ops, player_ops, leaderboard_service, players):
    await player_ops.set_rank(players.Bob.id, 1)
    board = await leaderboard_service.get_leaderboard()
    assert board.entry_for(players.Bob.id).position_delta == 4

    assert await admin_ops.start_new_week("Week 2") == 5

    board = await leaderboard_service.get_leaderboard()
    assert all(entry.position_delta == 0 for entry in board)
    assert board.first_place.player.name == "Bob"
    assert await admin_ops.get_current_week() == "Week 2"


async def test_start_new_week_is_atomic(admin_ops, player_ops, players):
    await player_ops.set_rank(players.Bob.id, 1)

    with pytest.raises(LeagueValidationError):
        await admin_ops.start_new_week("")

    bob = await player_ops.get_player(players.Bob.id)
    assert bob.previous_rank == 5


async def test_dashboard_stats(admin_ops, match_ops, engine, players, match):
    disputed = await match_ops.schedule_match(players.Zed.id, players.Xena.id)
    done = await match_ops.schedule_match(players.Zed.id, players.Yuri.id)
    await match_ops.schedule_match(players.Xena.id, players.Yuri.id)
    await engine.report_result(disputed.id, players.Zed.id, True)
    await engine.report_result(disputed.id, players.Xena.id, True)
    await _complete(engine, done.id, players.Yuri.id, players.Zed.id)
    await engine.report_result(match.id, players.Alice.id, True)
    await admin_ops.set_current_week("Week 1")

    stats = await admin_ops.get_dashboard_stats()
    assert stats.total_players == 5
    assert stats.completed_matches == 1
    assert stats.scheduled_matchups == 1
    assert stats.awaiting_confirmation == 1
    assert stats.disputed_matches == 1
    assert stats.current_week == "Week 1"


async def test_table_counts(db, engine, players, match):
    await engine.report_result(match.id, players.Alice.id, True)
    assert await db.get_table_counts() == {'players': 5, 'matches': 1, 'open_matches': 1}


# =============================================================================
# Match history
# =============================================================================

async def test_history_newest_first_with_record(history_service, match_ops, engine, players, match):
    second = await match_ops.schedule_match(players.Bob.id, players.Yuri.id, date_scheduled=datetime(2024, 10, 7))
    await _complete(engine, match.id, players.Alice.id, players.Bob.id)
    await _complete(engine, second.id, players.Bob.id, players.Yuri.id)
    # Open matches never appear in history
    await match_ops.schedule_match(players.Bob.id, players.Zed.id)

    history = await history_service.get_player_history(players.Bob.id)

    assert [e.match_id for e in history.entries] == [second.id, match.id]
    assert [e.won for e in history.entries] == [True, False]
    assert [e.opponent_name for e in history.entries] == ["Yuri", "Alice"]
    assert history.record == "1-1"


async def test_history_limit_keeps_full_record(history_service, match_ops, engine, players, match):
    second = await match_ops.schedule_match(players.Bob.id, players.Yuri.id)
    await _complete(engine, match.id, players.Alice.id, players.Bob.id)
    await _complete(engine, second.id, players.Yuri.id, players.Bob.id)

    history = await history_service.get_player_history(players.Bob.id, limit=1)
    assert len(history.entries) == 1
    assert (history.wins, history.losses) == (0, 2)


async def test_history_survives_deletion_attempt(history_service, player_ops, engine, players, match):
    await _complete(engine, match.id, players.Bob.id, players.Alice.id)
    with pytest.raises(PlayerInUseError):
        await player_ops.delete_player(players.Alice.id)

    history = await history_service.get_player_history(players.Bob.id)
    assert history.entries[0].opponent_name == "Alice"
    assert history.record == "1-0"


async def test_history_errors(history_service, players):
    with pytest.raises(PlayerNotFoundError):
        await history_service.get_player_history(9999)
    with pytest.raises(ValueError):
        await history_service.get_player_history(players.Bob.id, limit=0)

    empty = await history_service.get_player_history(players.Bob.id)
    assert empty.entries == []
    assert empty.record == "0-0"
