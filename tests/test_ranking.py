"""Rank policy and rank movement tests (no database)."""

from types import SimpleNamespace

import pytest

from league.utils.ranking import ManualRankPolicy, RankPolicy, is_dense_ranking, move_to_rank, order_by_rank


def make_player(player_id, rank):
    return SimpleNamespace(id=player_id, rank=rank)


def test_order_by_rank_breaks_ties_by_id():
    players = [make_player(3, 2), make_player(1, 2), make_player(2, 1)]
    assert [p.id for p in order_by_rank(players)] == [2, 1, 3]


@pytest.mark.parametrize("player_id,new_rank,expected", [
    (40, 1, [40, 10, 20, 30]),
    (10, 4, [20, 30, 40, 10]),
    (20, 3, [10, 30, 20, 40]),
    (30, 3, [10, 20, 30, 40]),
])
def test_move_to_rank(player_id, new_rank, expected):
    ranks = move_to_rank([10, 20, 30, 40], player_id, new_rank)
    assert sorted(ranks, key=ranks.get) == expected
    assert sorted(ranks.values()) == [1, 2, 3, 4]


def test_move_to_rank_errors():
    with pytest.raises(ValueError):
        move_to_rank([1, 2, 3], 99, 1)
    with pytest.raises(ValueError):
        move_to_rank([1, 2, 3], 1, 0)
    with pytest.raises(ValueError):
        move_to_rank([1, 2, 3], 1, 4)


def test_manual_policy_closes_gaps():
    players = [make_player(1, 1), make_player(2, 4), make_player(3, 9)]
    assert ManualRankPolicy().assign_ranks(players) == {1: 1, 2: 2, 3: 3}


def test_policy_is_swappable():
    class RecordPolicy(RankPolicy):
        name = "record"

        def assign_ranks(self, players):
            ordered = sorted(players, key=lambda p: -p.wins)
            return {p.id: index for index, p in enumerate(ordered, start=1)}

    players = [SimpleNamespace(id=1, wins=1), SimpleNamespace(id=2, wins=5)]
    assert RecordPolicy().assign_ranks(players) == {2: 1, 1: 2}

    with pytest.raises(TypeError):
        RankPolicy()


def test_is_dense_ranking():
    assert is_dense_ranking([make_player(1, 2), make_player(2, 1)])
    assert not is_dense_ranking([make_player(1, 1), make_player(2, 3)])
    assert not is_dense_ranking([make_player(1, 1), make_player(2, 1)])
    assert is_dense_ranking([])
