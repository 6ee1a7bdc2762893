"""Match store, scheduling and matchup projection tests."""

from datetime import datetime, timezone

import pytest

from league.database.models import MatchStatus
from league.utils.exceptions import (
    InvalidStateError, LeagueValidationError, MatchNotFoundError, PlayerNotFoundError
)


async def test_schedule_match(match_ops, players):
    match = await match_ops.schedule_match(players.Zed.id, players.Xena.id, week="Week 2")

    stored = await match_ops.require_match(match.id)
    assert stored.status == MatchStatus.SCHEDULED
    assert stored.participant_ids == (players.Zed.id, players.Xena.id)
    assert stored.winner_id is None and stored.loser_id is None
    assert stored.date_scheduled is not None
    assert stored.version == 1


async def test_timestamps_are_naive_utc(match_ops, engine, players):
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    match = await match_ops.schedule_match(players.Zed.id, players.Xena.id)
    await engine.report_result(match.id, players.Zed.id, True)
    await engine.report_result(match.id, players.Xena.id, False)
    after = datetime.now(timezone.utc).replace(tzinfo=None)

    stored = await match_ops.require_match(match.id)
    for stamp in (stored.date_scheduled, stored.completed_at):
        assert stamp.tzinfo is None
        assert before <= stamp <= after


async def test_schedule_match_validation(match_ops, players):
    with pytest.raises(LeagueValidationError):
        await match_ops.schedule_match(players.Zed.id, players.Zed.id)
    with pytest.raises(PlayerNotFoundError):
        await match_ops.schedule_match(players.Zed.id, 9999)


async def test_require_match_unknown(match_ops):
    assert await match_ops.get_match(9999) is None
    with pytest.raises(MatchNotFoundError):
        await match_ops.require_match(9999)


async def test_list_matches_for_player(match_ops, players, match):
    other = await match_ops.schedule_match(players.Bob.id, players.Yuri.id, date_scheduled=datetime(2024, 10, 7))
    await match_ops.schedule_match(players.Zed.id, players.Xena.id)

    bob_matches = await match_ops.list_matches_for_player(players.Bob.id)
    assert [m.id for m in bob_matches] == [match.id, other.id]

    await match_ops.cancel_match(other.id)
    open_only = await match_ops.list_matches_for_player(players.Bob.id, statuses=[MatchStatus.SCHEDULED])
    assert [m.id for m in open_only] == [match.id]


async def test_update_schedule(match_ops, players, match):
    updated = await match_ops.update_schedule(match.id, player2_id=players.Yuri.id, week="Week 1b")
    assert updated.participant_ids == (players.Alice.id, players.Yuri.id)
    assert updated.week == "Week 1b"


async def test_update_schedule_rejected_after_report(match_ops, engine, players, match):
    await engine.report_result(match.id, players.Alice.id, True)
    with pytest.raises(InvalidStateError):
        await match_ops.update_schedule(match.id, week="Week 9")


async def test_cancel_match(match_ops, match):
    cancelled = await match_ops.cancel_match(match.id, reason="Player unavailable")
    assert cancelled.status == MatchStatus.CANCELLED
    assert cancelled.admin_notes == "Player unavailable"

    with pytest.raises(InvalidStateError):
        await match_ops.cancel_match(match.id)


async def test_reopen_requires_dispute(match_ops, match):
    with pytest.raises(InvalidStateError) as exc_info:
        await match_ops.reopen_disputed_match(match.id)
    assert "re-open" in exc_info.value.user_message


async def test_delete_match(match_ops, engine, players, match):
    await engine.report_result(match.id, players.Alice.id, True)
    with pytest.raises(InvalidStateError):
        await match_ops.delete_match(match.id)

    fresh = await match_ops.schedule_match(players.Zed.id, players.Yuri.id)
    await match_ops.delete_match(fresh.id)
    assert await match_ops.get_match(fresh.id) is None


async def test_count_by_status(match_ops, engine, players, match):
    await match_ops.schedule_match(players.Zed.id, players.Yuri.id)
    await engine.report_result(match.id, players.Alice.id, True)

    counts = await match_ops.count_by_status()
    assert counts[MatchStatus.SCHEDULED] == 1
    assert counts[MatchStatus.AWAITING_CONFIRMATION] == 1
    assert counts[MatchStatus.COMPLETED] == 0
    assert set(counts) == set(MatchStatus)


# =============================================================================
# Matchups and current match
# =============================================================================

async def test_matchups_are_projected_from_scheduled_matches(match_ops, engine, players, match):
    second = await match_ops.schedule_match(
        players.Zed.id, players.Yuri.id, date_scheduled=datetime(2024, 10, 1), week="Week 1"
    )
    third = await match_ops.schedule_match(players.Xena.id, players.Bob.id, week="Week 2")

    matchups = await match_ops.list_matchups()
    assert [m.match_id for m in matchups] == [match.id, second.id, third.id]
    assert (matchups[0].player1_name, matchups[0].player2_name) == ("Alice", "Bob")

    week_one = await match_ops.list_matchups(week="Week 1")
    assert [m.match_id for m in week_one] == [match.id, second.id]

    # Once reported the pairing is no longer an upcoming matchup
    await engine.report_result(match.id, players.Alice.id, True)
    assert [m.match_id for m in await match_ops.list_matchups(week="Week 1")] == [second.id]


async def test_current_match(match_ops, engine, players, match):
    current = await match_ops.get_current_match(players.Bob.id)
    assert current.match.match_id == match.id
    assert current.opponent.name == "Alice"
    assert not current.has_reported

    await engine.report_result(match.id, players.Bob.id, False)
    current = await match_ops.get_current_match(players.Bob.id)
    assert current.match.status == MatchStatus.AWAITING_CONFIRMATION
    assert current.reported_winner_id == players.Alice.id

    await engine.report_result(match.id, players.Alice.id, True)
    assert await match_ops.get_current_match(players.Bob.id) is None


async def test_current_match_none_without_matches(match_ops, players):
    assert await match_ops.get_current_match(players.Zed.id) is None
