"""
Standings updater.

Applies the win/loss result of a completed match to the two players. Every
application is recorded in the standings ledger under the match id, so a
retried application for a match that was already applied does nothing.
"""

from typing import List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from league.database.models import Match, MatchStatus, Player, StandingsLedger
from league.utils.exceptions import MatchNotFoundError, PlayerNotFoundError, InvalidStateError
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class StandingsUpdater:
    """Win/loss bookkeeping for completed matches."""

    def __init__(self):
        self.logger = logger

    async def is_applied(self, session: AsyncSession, match_id: int) -> bool:
        """Check whether a match's result already counts in the standings"""
        ledger_id = await session.scalar(
            select(StandingsLedger.id).where(StandingsLedger.match_id == match_id)
        )
        return ledger_id is not None

    async def apply_result(self, session: AsyncSession, match_id: int, winner_id: int, loser_id: int) -> bool:
        """
        Add one win to the winner and one loss to the loser.

        Runs inside the caller's session so the increments commit together
        with the match status change. The counters are incremented in SQL
        (``wins = wins + 1``) rather than read-modify-write, so two different
        matches completing at once for the same player cannot lose an update.

        Returns:
            True if the standings changed, False if this match was already applied
        """
        if winner_id == loser_id:
            raise ValueError("Winner and loser must be different players")

        if await self.is_applied(session, match_id):
            self.logger.info(f"Standings for Match {match_id} already applied, skipping")
            return False

        for player_id in (winner_id, loser_id):
            if await session.get(Player, player_id) is None:
                raise PlayerNotFoundError(player_id)

        await session.execute(
            update(Player).where(Player.id == winner_id).values(wins=Player.wins + 1)
        )
        await session.execute(
            update(Player).where(Player.id == loser_id).values(losses=Player.losses + 1)
        )
        session.add(StandingsLedger(match_id=match_id, winner_id=winner_id, loser_id=loser_id))
        await session.flush()

        self.logger.info(f"Applied Match {match_id}: Player {winner_id} +1 win, Player {loser_id} +1 loss")
        return True

    async def apply_completed_match(self, session: AsyncSession, match_id: int) -> bool:
        """
        Apply a completed match that is missing from the ledger.

        Safe to call any number of times for the same match.
        """
        match = await session.get(Match, match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        if match.status != MatchStatus.COMPLETED:
            raise InvalidStateError(match_id, match.status, operation="apply standings for")
        return await self.apply_result(session, match.id, match.winner_id, match.loser_id)

    async def find_unapplied_matches(self, session: AsyncSession) -> List[int]:
        """Ids of completed matches that have no ledger row"""
        result = await session.execute(
            select(Match.id)
            .outerjoin(StandingsLedger, StandingsLedger.match_id == Match.id)
            .where(Match.status == MatchStatus.COMPLETED, StandingsLedger.id.is_(None))
            .order_by(Match.id)
        )
        return list(result.scalars().all())
