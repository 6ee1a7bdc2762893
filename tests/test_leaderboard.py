"""Leaderboard ordering, movement and pagination tests."""

from types import SimpleNamespace

import pytest

from league.data_models.player import PlayerProfile
from league.services.leaderboard import build_leaderboard


def make_profile(player_id, rank, previous_rank, name=None):
    return PlayerProfile(
        player_id=player_id,
        name=name or f"Player {player_id}",
        school_email=f"p{player_id}@school.edu",
        personal_email=None,
        phone=None,
        wins=0,
        losses=0,
        rank=rank,
        previous_rank=previous_rank,
        is_admin=False,
    )


class TestBuildLeaderboard:
    def test_orders_by_rank(self):
        board = build_leaderboard([
            make_profile(1, rank=3, previous_rank=3),
            make_profile(2, rank=1, previous_rank=2),
            make_profile(3, rank=2, previous_rank=1),
        ])

        assert [entry.player.player_id for entry in board] == [2, 3, 1]
        assert [entry.position for entry in board] == [1, 2, 3]

    def test_position_delta(self):
        board = build_leaderboard([
            make_profile(1, rank=1, previous_rank=3),
            make_profile(2, rank=2, previous_rank=2),
            make_profile(3, rank=3, previous_rank=1),
        ])

        deltas = {entry.player.player_id: entry.position_delta for entry in board}
        assert deltas == {1: 2, 2: 0, 3: -2}
        assert [entry.movement for entry in board] == ["up", "same", "down"]

    def test_unchanged_rank_has_zero_delta(self):
        board = build_leaderboard([make_profile(7, rank=4, previous_rank=4)])
        assert board[0].position_delta == 0

    def test_first_place_is_index_zero(self):
        board = build_leaderboard([
            make_profile(1, rank=2, previous_rank=2),
            make_profile(2, rank=1, previous_rank=1),
        ])

        assert board.first_place.player.player_id == 2
        assert board[0].is_first_place
        assert not board[1].is_first_place

    def test_iteration_is_restartable(self):
        board = build_leaderboard([make_profile(i, rank=i, previous_rank=i) for i in range(1, 4)])

        first = list(board)
        second = list(board)
        assert first == second
        assert len(board) == 3

    def test_accepts_model_like_objects(self):
        row = SimpleNamespace(
            id=5, name="Eve", school_email="eve@school.edu", personal_email=None, phone=None,
            wins=3, losses=1, rank=1, previous_rank=2, is_admin=False, discord_id=None
        )
        board = build_leaderboard([row])
        assert board[0].player.record == "3-1"
        assert board[0].position_delta == 1

    def test_empty(self):
        board = build_leaderboard([])
        assert list(board) == []
        assert board.first_place is None


class TestLeaderboardService:
    async def test_get_leaderboard(self, leaderboard_service, players):
        board = await leaderboard_service.get_leaderboard()

        assert [entry.player.name for entry in board] == ["Zed", "Alice", "Xena", "Yuri", "Bob"]
        assert all(entry.position_delta == 0 for entry in board)

    async def test_leaderboard_reflects_rank_edits(self, leaderboard_service, player_ops, players):
        await player_ops.set_rank(players.Bob.id, 1)

        board = await leaderboard_service.get_leaderboard()
        bob = board.entry_for(players.Bob.id)
        zed = board.entry_for(players.Zed.id)
        assert bob.position == 1 and bob.position_delta == 4
        assert zed.position == 2 and zed.position_delta == -1

    async def test_leaderboard_never_exposes_credential(self, leaderboard_service, players):
        board = await leaderboard_service.get_leaderboard()
        assert not hasattr(board[0].player, "credential")

    async def test_get_page(self, leaderboard_service, players):
        page = await leaderboard_service.get_page(page=2, page_size=2)

        assert page.current_page == 2
        assert page.total_pages == 3
        assert page.total_players == 5
        assert [entry.player.name for entry in page.entries] == ["Xena", "Yuri"]

    async def test_page_past_the_end_is_clamped(self, leaderboard_service, players):
        page = await leaderboard_service.get_page(page=10, page_size=2)
        assert page.current_page == 3
        assert [entry.player.name for entry in page.entries] == ["Bob"]

    async def test_empty_league_has_one_page(self, leaderboard_service):
        page = await leaderboard_service.get_page()
        assert page.total_pages == 1
        assert page.entries == []

    @pytest.mark.parametrize("page,page_size", [(0, 10), (1, 0), (1, 51)])
    async def test_invalid_paging(self, leaderboard_service, page, page_size):
        with pytest.raises(ValueError):
            await leaderboard_service.get_page(page=page, page_size=page_size)

    async def test_find_page_of(self, leaderboard_service, players):
        assert await leaderboard_service.find_page_of(players.Bob.id, page_size=2) == 3
        assert await leaderboard_service.find_page_of(players.Zed.id, page_size=2) == 1
        assert await leaderboard_service.find_page_of(9999, page_size=2) == 1
