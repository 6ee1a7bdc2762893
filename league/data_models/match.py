"""
Match data models.

Snapshots returned by the confirmation engine and the match queries, so
callers never hold live ORM objects across sessions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from league.database.models import MatchStatus
from league.data_models.player import PlayerProfile


@dataclass(frozen=True)
class MatchSnapshot:
    """State of a match at the moment it was read or written."""
    match_id: int
    player1_id: int
    player2_id: int
    status: MatchStatus
    player1_report: Optional[int]
    player2_report: Optional[int]
    winner_id: Optional[int]
    loser_id: Optional[int]
    date_scheduled: Optional[datetime]
    week: Optional[str]
    completed_at: Optional[datetime]
    version: int

    @classmethod
    def from_model(cls, match) -> "MatchSnapshot":
        return cls(
            match_id=match.id,
            player1_id=match.player1_id,
            player2_id=match.player2_id,
            status=match.status,
            player1_report=match.player1_report,
            player2_report=match.player2_report,
            winner_id=match.winner_id,
            loser_id=match.loser_id,
            date_scheduled=match.date_scheduled,
            week=match.week,
            completed_at=match.completed_at,
            version=match.version,
        )

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED


@dataclass(frozen=True)
class ReportOutcome:
    """Result of applying one participant's report."""
    match: MatchSnapshot
    standings_updated: bool

    @property
    def status(self) -> MatchStatus:
        return self.match.status


@dataclass(frozen=True)
class Matchup:
    """Scheduling view of a match that has not been reported yet."""
    match_id: int
    player1_id: int
    player1_name: str
    player2_id: int
    player2_name: str
    date_scheduled: Optional[datetime]
    week: Optional[str]


@dataclass(frozen=True)
class CurrentMatch:
    """A player's open match together with what they have reported so far."""
    match: MatchSnapshot
    opponent: Optional[PlayerProfile]
    reported_winner_id: Optional[int]

    @property
    def has_reported(self) -> bool:
        return self.reported_winner_id is not None


@dataclass(frozen=True)
class MatchHistoryEntry:
    """Single completed match from one player's point of view."""
    match_id: int
    opponent_id: int
    opponent_name: str
    won: bool
    date_scheduled: Optional[datetime]
    completed_at: Optional[datetime]
    week: Optional[str]


@dataclass(frozen=True)
class MatchHistory:
    """Completed matches for a player, newest first, with the derived record."""
    player_id: int
    entries: List[MatchHistoryEntry]
    wins: int
    losses: int

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class DashboardStats:
    """Admin dashboard counters."""
    total_players: int
    completed_matches: int
    scheduled_matchups: int
    awaiting_confirmation: int
    disputed_matches: int
    current_week: Optional[str]
