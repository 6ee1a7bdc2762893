"""
Match Operations Module

This module is the match store used by the league core, together with the
administrative match lifecycle that sits outside the confirmation protocol.

Single source of truth:
- A Match row is the only record of a weekly pairing
- Matchups shown to players are projections of SCHEDULED matches
- Report fields live on the match itself; there are no separate
  confirmation records that could drift out of sync

Status transitions owned here (everything else belongs to the
ConfirmationEngine):
- schedule_match():        (new)    -> SCHEDULED
- cancel_match():          open     -> CANCELLED
- reopen_disputed_match(): DISPUTED -> SCHEDULED, both reports cleared
"""

from typing import List, Optional, Dict, Iterable
from datetime import datetime
from contextlib import asynccontextmanager
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from league.database.models import (
    Match, MatchStatus, Player, REPORTABLE_STATUSES, TERMINAL_STATUSES, utc_now
)
from league.data_models.match import MatchSnapshot, Matchup, CurrentMatch
from league.data_models.player import PlayerProfile
from league.utils.exceptions import (
    MatchNotFoundError, PlayerNotFoundError, InvalidStateError, LeagueValidationError
)
from league.utils.logger import setup_logger

logger = setup_logger(__name__)

UNKNOWN_PLAYER_NAME = "Unknown Player"


class MatchOperations:
    """
    Match store and administrative match lifecycle.

    Writes accept an optional session so they can take part in a caller's
    transaction; otherwise each call manages and commits its own session.
    """

    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.logger = logger

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None):
        """
        Provides a session context. Uses the provided session if available,
        otherwise creates and manages a new session.
        """
        if session:
            # If a session is provided, we do not manage its lifecycle
            yield session
        else:
            async with self.db.get_session() as new_session:
                yield new_session

    async def _finish(self, s: AsyncSession, session: Optional[AsyncSession]):
        """Commit when we own the session, otherwise only flush"""
        if not session:
            await s.commit()
        else:
            await s.flush()

    async def _player_names(self, s: AsyncSession, player_ids: Iterable[int]) -> Dict[int, str]:
        ids = set(player_ids)
        if not ids:
            return {}
        result = await s.execute(select(Player.id, Player.name).where(Player.id.in_(list(ids))))
        return {row.id: row.name for row in result}

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    async def get_match(self, match_id: int, session: Optional[AsyncSession] = None) -> Optional[Match]:
        """Get a match by id, or None"""
        async with self._get_session_context(session) as s:
            return await s.get(Match, match_id)

    async def require_match(self, match_id: int, session: Optional[AsyncSession] = None) -> Match:
        """Get a match by id or raise MatchNotFoundError"""
        match = await self.get_match(match_id, session=session)
        if match is None:
            raise MatchNotFoundError(match_id)
        return match

    async def save_match(self, match: Match, session: Optional[AsyncSession] = None) -> Match:
        """Insert or update a match record"""
        async with self._get_session_context(session) as s:
            match = await s.merge(match)
            await self._finish(s, session)
            return match

    async def list_matches_for_player(
        self,
        player_id: int,
        statuses: Optional[Iterable[MatchStatus]] = None,
        session: Optional[AsyncSession] = None
    ) -> List[Match]:
        """List matches a player takes part in, oldest scheduled first"""
        async with self._get_session_context(session) as s:
            query = select(Match).where(
                or_(Match.player1_id == player_id, Match.player2_id == player_id)
            )
            if statuses is not None:
                query = query.where(Match.status.in_(list(statuses)))
            query = query.order_by(Match.date_scheduled, Match.id)
            result = await s.execute(query)
            return list(result.scalars().all())

    async def count_by_status(self, session: Optional[AsyncSession] = None) -> Dict[MatchStatus, int]:
        """Number of matches in each status"""
        async with self._get_session_context(session) as s:
            result = await s.execute(
                select(Match.status, func.count(Match.id)).group_by(Match.status)
            )
            counts = {status: 0 for status in MatchStatus}
            for status, count in result:
                counts[status] = count
            return counts

    # ------------------------------------------------------------------
    # Scheduling (admin)
    # ------------------------------------------------------------------

    async def schedule_match(
        self,
        player1_id: int,
        player2_id: int,
        date_scheduled: Optional[datetime] = None,
        week: Optional[str] = None,
        session: Optional[AsyncSession] = None
    ) -> Match:
        """
        Pair two players for a match.

        Raises:
            LeagueValidationError: If both sides are the same player
            PlayerNotFoundError: If either player does not exist
        """
        if player1_id == player2_id:
            raise LeagueValidationError("A player cannot be matched against themselves")

        async with self._get_session_context(session) as s:
            for player_id in (player1_id, player2_id):
                if await s.get(Player, player_id) is None:
                    raise PlayerNotFoundError(player_id)

            match = Match(
                player1_id=player1_id,
                player2_id=player2_id,
                date_scheduled=date_scheduled or utc_now(),
                week=week,
                status=MatchStatus.SCHEDULED
            )
            s.add(match)
            await s.flush()
            await self._finish(s, session)

            self.logger.info(f"Scheduled Match {match.id}: Player {player1_id} vs Player {player2_id} ({week or 'no week'})")
            return match

    async def update_schedule(
        self,
        match_id: int,
        player1_id: Optional[int] = None,
        player2_id: Optional[int] = None,
        date_scheduled: Optional[datetime] = None,
        week: Optional[str] = None,
        session: Optional[AsyncSession] = None
    ) -> Match:
        """
        Edit a pairing that nobody has reported on yet.

        Raises:
            InvalidStateError: If the match is not SCHEDULED or already has a report
        """
        async with self._get_session_context(session) as s:
            match = await self.require_match(match_id, session=s)
            if match.status != MatchStatus.SCHEDULED or match.player1_report or match.player2_report:
                raise InvalidStateError(match_id, match.status, operation="edit")

            new_p1 = player1_id if player1_id is not None else match.player1_id
            new_p2 = player2_id if player2_id is not None else match.player2_id
            if new_p1 == new_p2:
                raise LeagueValidationError("A player cannot be matched against themselves")
            for player_id in {new_p1, new_p2} - {match.player1_id, match.player2_id}:
                if await s.get(Player, player_id) is None:
                    raise PlayerNotFoundError(player_id)

            match.player1_id = new_p1
            match.player2_id = new_p2
            if date_scheduled is not None:
                match.date_scheduled = date_scheduled
            if week is not None:
                match.week = week

            await self._finish(s, session)
            self.logger.info(f"Updated schedule for Match {match_id}")
            return match

    async def cancel_match(self, match_id: int, reason: Optional[str] = None, session: Optional[AsyncSession] = None) -> Match:
        """
        Cancel a match that has not been completed.

        Raises:
            InvalidStateError: If the match is already completed or cancelled
        """
        async with self._get_session_context(session) as s:
            match = await self.require_match(match_id, session=s)
            if match.status in TERMINAL_STATUSES:
                raise InvalidStateError(match_id, match.status, operation="cancel")

            match.status = MatchStatus.CANCELLED
            if reason:
                match.admin_notes = reason

            await self._finish(s, session)
            self.logger.info(f"Cancelled Match {match_id}: {reason or 'no reason given'}")
            return match

    async def reopen_disputed_match(self, match_id: int, notes: Optional[str] = None, session: Optional[AsyncSession] = None) -> Match:
        """
        Resolve a dispute by sending the match back to SCHEDULED.

        Both reports are cleared so the players report again from scratch.

        Raises:
            InvalidStateError: If the match is not DISPUTED
        """
        async with self._get_session_context(session) as s:
            match = await self.require_match(match_id, session=s)
            if match.status != MatchStatus.DISPUTED:
                raise InvalidStateError(match_id, match.status, operation="re-open")

            match.status = MatchStatus.SCHEDULED
            match.player1_report = None
            match.player2_report = None
            if notes:
                match.admin_notes = notes

            await self._finish(s, session)
            self.logger.info(f"Re-opened disputed Match {match_id}")
            return match

    async def delete_match(self, match_id: int, session: Optional[AsyncSession] = None) -> None:
        """
        Delete a match that carries no results.

        Raises:
            InvalidStateError: Unless the match is SCHEDULED or CANCELLED
        """
        async with self._get_session_context(session) as s:
            match = await self.require_match(match_id, session=s)
            if match.status not in (MatchStatus.SCHEDULED, MatchStatus.CANCELLED):
                raise InvalidStateError(match_id, match.status, operation="delete")

            await s.delete(match)
            await self._finish(s, session)
            self.logger.info(f"Deleted Match {match_id}")

    # ------------------------------------------------------------------
    # Scheduling views
    # ------------------------------------------------------------------

    async def list_matchups(self, week: Optional[str] = None, session: Optional[AsyncSession] = None) -> List[Matchup]:
        """Matchups generated from SCHEDULED matches, optionally for one week"""
        async with self._get_session_context(session) as s:
            query = select(Match).where(Match.status == MatchStatus.SCHEDULED)
            if week is not None:
                query = query.where(Match.week == week)
            query = query.order_by(Match.date_scheduled, Match.id)
            matches = list((await s.execute(query)).scalars().all())

            names = await self._player_names(s, [pid for m in matches for pid in m.participant_ids])
            return [
                Matchup(
                    match_id=m.id,
                    player1_id=m.player1_id,
                    player1_name=names.get(m.player1_id, UNKNOWN_PLAYER_NAME),
                    player2_id=m.player2_id,
                    player2_name=names.get(m.player2_id, UNKNOWN_PLAYER_NAME),
                    date_scheduled=m.date_scheduled,
                    week=m.week
                )
                for m in matches
            ]

    async def get_current_match(self, player_id: int, session: Optional[AsyncSession] = None) -> Optional[CurrentMatch]:
        """
        The player's earliest open match (scheduled, awaiting confirmation or
        disputed) with the opponent and the player's own report, if any.
        """
        async with self._get_session_context(session) as s:
            open_matches = await self.list_matches_for_player(player_id, statuses=REPORTABLE_STATUSES, session=s)
            if not open_matches:
                return None

            match = open_matches[0]
            opponent = await s.get(Player, match.opponent_of(player_id))
            return CurrentMatch(
                match=MatchSnapshot.from_model(match),
                opponent=PlayerProfile.from_model(opponent) if opponent else None,
                reported_winner_id=match.report_of(player_id)
            )
