"""
Match result confirmation engine.

A result becomes authoritative only when both participants report the same
winner. Each report is applied as one read-modify-write of the match:

    no reports      --report-->  AWAITING_CONFIRMATION
    one report      --report-->  COMPLETED  (claims agree, standings applied)
                                 DISPUTED   (claims differ, nothing applied)
    DISPUTED        --report-->  COMPLETED / DISPUTED (re-resolution)

A participant may re-report before completion; only their latest report
counts. Reports against COMPLETED or CANCELLED matches are rejected.

Concurrency: reports for one match are serialized by a per-match lock in
this process, and the match's version column rejects a write that lost a
race with another process (StaleDataError), in which case the whole report
is retried from a fresh read.
"""

import asyncio
import weakref
from typing import Optional
from sqlalchemy.orm.exc import StaleDataError

from league.config import Config
from league.database.models import Match, MatchStatus, REPORTABLE_STATUSES, utc_now
from league.data_models.match import MatchSnapshot, ReportOutcome
from league.services.base import BaseService
from league.services.standings import StandingsUpdater
from league.utils.exceptions import (
    MatchNotFoundError, NotParticipantError, InvalidStateError, ConcurrencyError
)
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class ConfirmationEngine(BaseService):
    """Applies self-reported results and decides when a match is final."""

    def __init__(
        self,
        session_factory,
        standings_updater: Optional[StandingsUpdater] = None,
        max_retries: Optional[int] = None
    ):
        super().__init__(session_factory)
        self.standings = standings_updater or StandingsUpdater()
        self.max_retries = Config.REPORT_MAX_RETRIES if max_retries is None else max_retries
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        self._match_locks = weakref.WeakValueDictionary()
        self.logger = logger

    def _lock_for(self, match_id: int) -> asyncio.Lock:
        lock = self._match_locks.get(match_id)
        if lock is None:
            lock = asyncio.Lock()
            self._match_locks[match_id] = lock
        return lock

    async def report_result(self, match_id: int, reporting_player_id: int, claims_self_won: bool) -> ReportOutcome:
        """
        Record one participant's claim and advance the match.

        Args:
            match_id: Match being reported
            reporting_player_id: The acting player (must be a participant)
            claims_self_won: True if the reporter says they won

        Returns:
            ReportOutcome with the match snapshot and whether standings changed

        Raises:
            MatchNotFoundError: Unknown match id
            NotParticipantError: Reporter is not one of the two players
            InvalidStateError: Match is completed or cancelled
            ConcurrencyError: Kept losing to concurrent writers
        """
        lock = self._lock_for(match_id)
        async with lock:
            async def attempt():
                return await self._apply_report(match_id, reporting_player_id, claims_self_won)

            try:
                return await self.execute_with_retry(
                    attempt, max_retries=self.max_retries, retry_on=(StaleDataError,)
                )
            except StaleDataError:
                self.logger.error(f"Report for Match {match_id} by Player {reporting_player_id} lost every retry")
                raise ConcurrencyError("report_result", self.max_retries)

    async def _apply_report(self, match_id: int, reporting_player_id: int, claims_self_won: bool) -> ReportOutcome:
        async with self.get_session() as session:
            match = await session.get(Match, match_id)
            if match is None:
                raise MatchNotFoundError(match_id)
            if not match.has_participant(reporting_player_id):
                raise NotParticipantError(match_id, reporting_player_id)
            if match.status not in REPORTABLE_STATUSES:
                raise InvalidStateError(match_id, match.status)

            claimed_winner_id = reporting_player_id if claims_self_won else match.opponent_of(reporting_player_id)
            if reporting_player_id == match.player1_id:
                match.player1_report = claimed_winner_id
            else:
                match.player2_report = claimed_winner_id

            standings_updated = False
            previous_status = match.status

            if match.player1_report is None or match.player2_report is None:
                match.status = MatchStatus.AWAITING_CONFIRMATION
            elif match.player1_report == match.player2_report:
                winner_id = match.player1_report
                loser_id = match.opponent_of(winner_id)
                match.status = MatchStatus.COMPLETED
                match.winner_id = winner_id
                match.loser_id = loser_id
                match.completed_at = utc_now()
                standings_updated = await self.standings.apply_result(session, match.id, winner_id, loser_id)
            else:
                match.status = MatchStatus.DISPUTED

            # Version check happens here; a lost race raises StaleDataError
            await session.flush()
            snapshot = MatchSnapshot.from_model(match)

        self.logger.info(
            f"Player {reporting_player_id} reported Player {claimed_winner_id} as winner of Match {match_id}: "
            f"{previous_status.value} -> {snapshot.status.value}"
            + (" (standings updated)" if standings_updated else "")
        )
        return ReportOutcome(match=snapshot, standings_updated=standings_updated)
