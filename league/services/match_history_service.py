"""
Match History Service

Completed matches from one player's point of view, newest first, with the
win/loss record derived from those matches.
"""

from typing import Optional
import logging

from sqlalchemy import select, or_, desc

from league.services.base import BaseService
from league.database.models import Match, MatchStatus, Player
from league.data_models.match import MatchHistory, MatchHistoryEntry
from league.utils.exceptions import PlayerNotFoundError

logger = logging.getLogger(__name__)

UNKNOWN_PLAYER_NAME = "Unknown Player"


class MatchHistoryService(BaseService):
    """Service for per-player match history"""

    MAX_HISTORY_LIMIT = 100

    async def get_player_history(self, player_id: int, limit: Optional[int] = None) -> MatchHistory:
        """
        Completed matches for a player.

        The record counts every completed match, even when ``limit`` trims
        the returned entries.

        Raises:
            PlayerNotFoundError: If the player does not exist
            ValueError: If limit is out of range
        """
        if limit is not None and not 1 <= limit <= self.MAX_HISTORY_LIMIT:
            raise ValueError(f"limit must be between 1 and {self.MAX_HISTORY_LIMIT}")

        async with self.get_session() as session:
            if await session.get(Player, player_id) is None:
                raise PlayerNotFoundError(player_id)

            result = await session.execute(
                select(Match)
                .where(
                    or_(Match.player1_id == player_id, Match.player2_id == player_id),
                    Match.status == MatchStatus.COMPLETED
                )
                .order_by(desc(Match.completed_at), desc(Match.id))
            )
            matches = list(result.scalars().all())

            opponent_ids = {m.opponent_of(player_id) for m in matches}
            names = {}
            if opponent_ids:
                rows = await session.execute(
                    select(Player.id, Player.name).where(Player.id.in_(list(opponent_ids)))
                )
                names = {row.id: row.name for row in rows}

        entries = []
        wins = losses = 0
        for match in matches:
            won = match.winner_id == player_id
            if won:
                wins += 1
            else:
                losses += 1
            opponent_id = match.opponent_of(player_id)
            entries.append(MatchHistoryEntry(
                match_id=match.id,
                opponent_id=opponent_id,
                opponent_name=names.get(opponent_id, UNKNOWN_PLAYER_NAME),
                won=won,
                date_scheduled=match.date_scheduled,
                completed_at=match.completed_at,
                week=match.week
            ))

        if limit is not None:
            entries = entries[:limit]

        logger.debug(f"History for Player {player_id}: {len(matches)} completed matches ({wins}-{losses})")
        return MatchHistory(player_id=player_id, entries=entries, wins=wins, losses=losses)
