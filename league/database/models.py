from sqlalchemy import (
    Column, Integer, String, DateTime, Boolean, Text,
    ForeignKey, BigInteger, Enum as SQLEnum, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

Base = declarative_base()

def utc_now() -> datetime:
    """Naive UTC timestamp, matching what func.now() stores in the DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

class MatchStatus(Enum):
    """Status of a match from scheduling to resolution"""
    SCHEDULED = "scheduled"                          # Paired, no reports yet
    AWAITING_CONFIRMATION = "awaiting_confirmation"  # One participant has reported
    COMPLETED = "completed"                          # Both reports agree, standings applied
    DISPUTED = "disputed"                            # Reports disagree, waiting for admin
    CANCELLED = "cancelled"                          # Cancelled by admin

# Statuses that still accept a report from a participant
REPORTABLE_STATUSES = frozenset({
    MatchStatus.SCHEDULED,
    MatchStatus.AWAITING_CONFIRMATION,
    MatchStatus.DISPUTED,
})

TERMINAL_STATUSES = frozenset({MatchStatus.COMPLETED, MatchStatus.CANCELLED})

class Player(Base):
    __tablename__ = 'players'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    # Opaque credential, only read by PlayerOperations.authenticate
    credential = Column(String(255), nullable=False, default='')

    # Contact fields
    school_email = Column(String(255), nullable=False, unique=True, index=True)
    personal_email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    # Chat identity used as the acting-player context by the bot
    discord_id = Column(BigInteger, unique=True, nullable=True, index=True)

    # Standings
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)

    # Administratively assigned positions
    rank = Column(Integer, nullable=False, index=True)
    previous_rank = Column(Integer, nullable=False)

    is_admin = Column(Boolean, nullable=False, default=False)

    # Metadata
    registered_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('wins >= 0', name='check_wins_non_negative'),
        CheckConstraint('losses >= 0', name='check_losses_non_negative'),
        CheckConstraint('rank >= 1', name='check_rank_positive'),
        CheckConstraint('previous_rank >= 1', name='check_previous_rank_positive'),
    )

    @property
    def matches_played(self) -> int:
        return (self.wins or 0) + (self.losses or 0)

    @property
    def record(self) -> str:
        return f"{self.wins or 0}-{self.losses or 0}"

    @property
    def position_delta(self) -> int:
        """Positions gained since the previous week (positive = moved up)"""
        return self.previous_rank - self.rank

    def __repr__(self):
        return f"<Player(id={self.id}, name='{self.name}', rank={self.rank}, record={self.record})>"

class Match(Base):
    """
    A single scheduled contest between two players.

    This record is the only source of truth for a weekly pairing: matchups
    shown to players are read from matches in SCHEDULED status. The
    ``version`` column is a mapper version counter, so every flush of a
    match checks that nobody else wrote it since it was loaded.
    """
    __tablename__ = 'matches'

    id = Column(Integer, primary_key=True)

    player1_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    player2_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)

    date_scheduled = Column(DateTime, nullable=True)
    week = Column(String(100), nullable=True, index=True)

    status = Column(SQLEnum(MatchStatus), nullable=False, default=MatchStatus.SCHEDULED, index=True)

    # Each participant's claim of who won (claimed winner's player id)
    player1_report = Column(Integer, ForeignKey('players.id'), nullable=True)
    player2_report = Column(Integer, ForeignKey('players.id'), nullable=True)

    # Set only once the match is completed
    winner_id = Column(Integer, ForeignKey('players.id'), nullable=True)
    loser_id = Column(Integer, ForeignKey('players.id'), nullable=True)
    completed_at = Column(DateTime, nullable=True)

    admin_notes = Column(Text)

    version = Column(Integer, nullable=False, default=1)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    # Relationships
    player1 = relationship("Player", foreign_keys=[player1_id])
    player2 = relationship("Player", foreign_keys=[player2_id])
    winner = relationship("Player", foreign_keys=[winner_id])
    loser = relationship("Player", foreign_keys=[loser_id])

    __table_args__ = (
        CheckConstraint('player1_id != player2_id', name='check_distinct_participants'),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def participant_ids(self) -> tuple:
        return (self.player1_id, self.player2_id)

    @property
    def is_open(self) -> bool:
        """Check if match still accepts reports"""
        return self.status in REPORTABLE_STATUSES

    def has_participant(self, player_id: int) -> bool:
        return player_id in self.participant_ids

    def opponent_of(self, player_id: int) -> int:
        """Get the other participant's id"""
        if player_id == self.player1_id:
            return self.player2_id
        if player_id == self.player2_id:
            return self.player1_id
        raise ValueError(f"Player {player_id} is not in Match {self.id}")

    def report_of(self, player_id: int) -> Optional[int]:
        """Get the claimed winner reported by a participant, if any"""
        if player_id == self.player1_id:
            return self.player1_report
        if player_id == self.player2_id:
            return self.player2_report
        raise ValueError(f"Player {player_id} is not in Match {self.id}")

    def __repr__(self):
        return (
            f"<Match(id={self.id}, players=({self.player1_id}, {self.player2_id}), "
            f"status={self.status.value if self.status else None}, version={self.version})>"
        )

class StandingsLedger(Base):
    """
    One row per match whose result has been applied to the standings.

    The unique match_id makes applying a result a one-time operation even
    when the surrounding transaction is retried.
    """
    __tablename__ = 'standings_ledger'

    id = Column(Integer, primary_key=True)
    match_id = Column(Integer, ForeignKey('matches.id'), nullable=False)
    winner_id = Column(Integer, ForeignKey('players.id'), nullable=False)
    loser_id = Column(Integer, ForeignKey('players.id'), nullable=False)
    applied_at = Column(DateTime, default=func.now())

    match = relationship("Match")

    __table_args__ = (
        UniqueConstraint('match_id', name='unique_standings_per_match'),
    )

    def __repr__(self):
        return f"<StandingsLedger(match_id={self.match_id}, winner={self.winner_id}, loser={self.loser_id})>"

class LeagueSetting(Base):
    """Key/value league settings such as the current week label (JSON values)"""
    __tablename__ = 'league_settings'

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<LeagueSetting(key='{self.key}')>"
