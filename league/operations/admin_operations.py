"""
Administrative Operations Module

League-wide administrative workflows that span more than one record:

- start_new_week(): snapshot every rank into previous_rank and set the week label
- get_current_week() / set_current_week(): the week label shown with matchups
- get_dashboard_stats(): counters for the admin dashboard
- reconcile_standings(): apply completed matches missing from the standings ledger
- require_admin(): permission check for the acting player
"""

import json
from typing import Optional, List, Any
from contextlib import asynccontextmanager
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from league.database.models import Player, LeagueSetting, MatchStatus
from league.data_models.match import DashboardStats
from league.operations.player_operations import PlayerOperations
from league.database.match_operations import MatchOperations
from league.services.standings import StandingsUpdater
from league.utils.exceptions import PermissionDeniedError, PlayerNotFoundError, LeagueValidationError
from league.utils.logger import setup_logger

logger = setup_logger(__name__)

CURRENT_WEEK_KEY = 'schedule.current_week'


class AdminOperations:
    """
    Business logic operations for league administration.

    Multi-step workflows run in one transaction so a failure leaves the
    league exactly as it was.
    """

    def __init__(
        self,
        database,
        player_ops: Optional[PlayerOperations] = None,
        match_ops: Optional[MatchOperations] = None,
        standings_updater: Optional[StandingsUpdater] = None
    ):
        """Initialize with database instance and the operations it composes"""
        self.db = database
        self.player_ops = player_ops or PlayerOperations(database)
        self.match_ops = match_ops or MatchOperations(database)
        self.standings = standings_updater or StandingsUpdater()
        self.logger = logger

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None):
        """
        Provides a session context. Uses the provided session if available,
        otherwise creates and manages a new session.
        """
        if session:
            yield session
        else:
            async with self.db.get_session() as new_session:
                yield new_session

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def require_admin(self, player_id: int, session: Optional[AsyncSession] = None) -> Player:
        """
        Raises:
            PermissionDeniedError: If the player is missing or not an admin
        """
        player = await self.player_ops.get_player(player_id, session=session)
        if player is None or not player.is_admin:
            raise PermissionDeniedError(player_id)
        return player

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def _get_setting(self, key: str, default: Any = None, session: Optional[AsyncSession] = None) -> Any:
        async with self._get_session_context(session) as s:
            setting = await s.get(LeagueSetting, key)
            if setting is None:
                return default
            try:
                return json.loads(setting.value)
            except json.JSONDecodeError:
                self.logger.warning(f"Invalid JSON for setting '{key}', using default")
                return default

    async def _set_setting(self, key: str, value: Any, session: AsyncSession) -> None:
        setting = await session.get(LeagueSetting, key)
        if setting is None:
            session.add(LeagueSetting(key=key, value=json.dumps(value)))
        else:
            setting.value = json.dumps(value)
        await session.flush()

    async def get_current_week(self, session: Optional[AsyncSession] = None) -> Optional[str]:
        """Label of the current weekly round, if one was set"""
        return await self._get_setting(CURRENT_WEEK_KEY, session=session)

    async def set_current_week(self, label: str, session: Optional[AsyncSession] = None) -> str:
        """Set the label of the current weekly round"""
        label = (label or "").strip()
        if not label:
            raise LeagueValidationError("Week label is required")

        async with self._get_session_context(session) as s:
            await self._set_setting(CURRENT_WEEK_KEY, label, s)
            if not session:
                await s.commit()
        self.logger.info(f"Current week set to '{label}'")
        return label

    # ------------------------------------------------------------------
    # Weekly workflow
    # ------------------------------------------------------------------

    async def start_new_week(self, label: str) -> int:
        """
        Begin a new weekly round.

        Every player's current rank becomes their previous rank (so all
        leaderboard deltas reset to zero) and the week label changes, in
        one transaction.

        Returns:
            Number of players whose rank was snapshotted
        """
        async with self.db.transaction() as session:
            count = await self.player_ops.snapshot_ranks(session=session)
            await self.set_current_week(label, session=session)
        self.logger.info(f"Started week '{label}' with {count} players")
        return count

    async def get_dashboard_stats(self) -> DashboardStats:
        """Counters for the admin dashboard"""
        async with self.db.get_session() as session:
            total_players = await session.scalar(select(func.count(Player.id)))
            counts = await self.match_ops.count_by_status(session=session)
            current_week = await self.get_current_week(session=session)

        return DashboardStats(
            total_players=total_players or 0,
            completed_matches=counts[MatchStatus.COMPLETED],
            scheduled_matchups=counts[MatchStatus.SCHEDULED],
            awaiting_confirmation=counts[MatchStatus.AWAITING_CONFIRMATION],
            disputed_matches=counts[MatchStatus.DISPUTED],
            current_week=current_week
        )

    async def reconcile_standings(self) -> List[int]:
        """
        Apply every completed match that is missing from the standings ledger.

        Matches already in the ledger are left alone, so running this twice
        changes nothing the second time.

        Returns:
            Ids of the matches that were applied
        """
        applied = []
        async with self.db.transaction() as session:
            for match_id in await self.standings.find_unapplied_matches(session):
                try:
                    if await self.standings.apply_completed_match(session, match_id):
                        applied.append(match_id)
                except PlayerNotFoundError as e:
                    self.logger.error(f"Cannot apply Match {match_id}: {e}")
                    raise
        if applied:
            self.logger.warning(f"Reconciled standings for matches {applied}")
        return applied
