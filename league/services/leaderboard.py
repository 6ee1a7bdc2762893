"""
Leaderboard service.

Renders the stored standings: players ordered by their administratively
assigned rank, each annotated with how many positions they moved since the
previous week. Rank is never recomputed from wins and losses here.
"""

from collections.abc import Sequence
from typing import Iterable, Iterator, List, Optional
import logging

from sqlalchemy import select

from league.services.base import BaseService
from league.data_models.leaderboard import AnnotatedPlayer, LeaderboardPage
from league.data_models.player import PlayerProfile
from league.database.models import Player

logger = logging.getLogger(__name__)


def _as_profile(player) -> PlayerProfile:
    if isinstance(player, PlayerProfile):
        return player
    return PlayerProfile.from_model(player)


class Leaderboard(Sequence):
    """
    Ordered, rank-annotated view over a snapshot of players.

    Entries are computed on access, so iterating twice yields the same rows
    and nothing is carried over between iterations. Index 0 is first place.
    """

    def __init__(self, players: Iterable):
        self._players = tuple(_as_profile(p) for p in players)

    def _ordered(self) -> List[PlayerProfile]:
        return sorted(self._players, key=lambda p: (p.rank, p.player_id))

    def __iter__(self) -> Iterator[AnnotatedPlayer]:
        for position, player in enumerate(self._ordered(), start=1):
            yield AnnotatedPlayer(
                position=position,
                player=player,
                position_delta=player.previous_rank - player.rank
            )

    def __len__(self) -> int:
        return len(self._players)

    def __getitem__(self, index):
        return list(self)[index]

    @property
    def first_place(self) -> Optional[AnnotatedPlayer]:
        return next(iter(self), None)

    def entry_for(self, player_id: int) -> Optional[AnnotatedPlayer]:
        return next((entry for entry in self if entry.player.player_id == player_id), None)


def build_leaderboard(players: Iterable) -> Leaderboard:
    """Order players by rank and annotate each with previous_rank - rank."""
    return Leaderboard(players)


class LeaderboardService(BaseService):
    """Service for leaderboard queries and pagination."""

    MAX_PAGE_SIZE = 50

    async def get_leaderboard(self) -> Leaderboard:
        """Current standings for every listed player"""
        async with self.get_session() as session:
            result = await session.execute(select(Player).order_by(Player.rank, Player.id))
            players = result.scalars().all()
            return build_leaderboard(players)

    async def get_page(self, page: int = 1, page_size: int = 10) -> LeaderboardPage:
        """Get one page of the leaderboard."""
        if not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer")
        if not isinstance(page_size, int) or page_size < 1 or page_size > self.MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {self.MAX_PAGE_SIZE}")

        leaderboard = await self.get_leaderboard()
        total_players = len(leaderboard)
        total_pages = (total_players + page_size - 1) // page_size if total_players > 0 else 1
        if page > total_pages:
            page = total_pages

        offset = (page - 1) * page_size
        entries = list(leaderboard)[offset:offset + page_size]

        logger.debug(f"Leaderboard page {page}/{total_pages} with {len(entries)} entries")
        return LeaderboardPage(
            entries=entries,
            current_page=page,
            total_pages=total_pages,
            total_players=total_players
        )

    async def find_page_of(self, player_id: int, page_size: int = 10) -> int:
        """Page number that contains the given player (1 if not listed)"""
        leaderboard = await self.get_leaderboard()
        entry = leaderboard.entry_for(player_id)
        if entry is None:
            return 1
        return (entry.position - 1) // page_size + 1
