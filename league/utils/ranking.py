"""
Rank assignment policies.

Ranks are administratively assigned: the shipped ``ManualRankPolicy`` keeps
whatever order an admin set and only re-numbers it densely. Another policy
(for example one ordering by win/loss record) can be swapped in through
``PlayerOperations(rank_policy=...)`` without touching the leaderboard or
the confirmation engine.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Sequence


def order_by_rank(players: Iterable) -> List:
    """Sort players by rank, breaking ties by id so the order is deterministic."""
    return sorted(players, key=lambda p: (p.rank, p.id))


def move_to_rank(ordered_ids: Sequence[int], player_id: int, new_rank: int) -> Dict[int, int]:
    """
    Move one player to ``new_rank`` and shift everyone in between.

    Returns a dense 1..N rank mapping for all ids.
    """
    if player_id not in ordered_ids:
        raise ValueError(f"Player {player_id} is not ranked")
    if not 1 <= new_rank <= len(ordered_ids):
        raise ValueError(f"Rank must be between 1 and {len(ordered_ids)}")

    remaining = [pid for pid in ordered_ids if pid != player_id]
    remaining.insert(new_rank - 1, player_id)
    return {pid: index for index, pid in enumerate(remaining, start=1)}


class RankPolicy(ABC):
    """Strategy that decides the rank of every listed player."""

    name = "abstract"

    @abstractmethod
    def assign_ranks(self, players: Sequence) -> Dict[int, int]:
        """Return a dense 1..N mapping of player id to rank."""


class ManualRankPolicy(RankPolicy):
    """Keep the administratively assigned order, closing any gaps."""

    name = "manual"

    def assign_ranks(self, players: Sequence) -> Dict[int, int]:
        return {player.id: index for index, player in enumerate(order_by_rank(players), start=1)}


def is_dense_ranking(players: Sequence) -> bool:
    """Check that ranks form exactly the permutation 1..N."""
    return sorted(p.rank for p in players) == list(range(1, len(players) + 1))
