"""
Leaderboard data models.

Provides immutable data transfer objects for leaderboard rendering.
"""

from dataclasses import dataclass
from typing import List

from league.data_models.player import PlayerProfile


@dataclass(frozen=True)
class AnnotatedPlayer:
    """Single leaderboard row: a player and how far they moved since last week."""
    position: int  # 1-based index in the ordered leaderboard
    player: PlayerProfile
    position_delta: int  # previous_rank - rank, positive = moved up

    @property
    def is_first_place(self) -> bool:
        return self.position == 1

    @property
    def movement(self) -> str:
        if self.position_delta > 0:
            return "up"
        if self.position_delta < 0:
            return "down"
        return "same"


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated leaderboard data."""
    entries: List[AnnotatedPlayer]
    current_page: int
    total_pages: int
    total_players: int
