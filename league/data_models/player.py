"""
Player data models.

Immutable snapshots of player records handed to callers outside the
database layer. The credential is never copied into a snapshot.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PlayerProfile:
    """Public view of a player record."""
    player_id: int
    name: str
    school_email: str
    personal_email: Optional[str]
    phone: Optional[str]
    wins: int
    losses: int
    rank: int
    previous_rank: int
    is_admin: bool
    discord_id: Optional[int] = None

    @classmethod
    def from_model(cls, player) -> "PlayerProfile":
        return cls(
            player_id=player.id,
            name=player.name,
            school_email=player.school_email,
            personal_email=player.personal_email,
            phone=player.phone,
            wins=player.wins or 0,
            losses=player.losses or 0,
            rank=player.rank,
            previous_rank=player.previous_rank,
            is_admin=bool(player.is_admin),
            discord_id=player.discord_id,
        )

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses
