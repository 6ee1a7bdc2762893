"""
Player Operations Module

This module is the player directory used by the league core: lookups,
administrative CRUD, rank editing and the credential check used to link a
chat account to a player.

Key functionality:
- get_player() / list_players() / save_player(): directory read/write contract
- create_player() / update_player() / delete_player(): admin CRUD
- set_rank() / snapshot_ranks(): administrative rank edits through a RankPolicy
- authenticate(): credential lookup returning a public profile

Every write accepts an optional session so it can join a caller's
transaction; when no session is given the operation manages and commits
its own.
"""

import hmac
from typing import Optional, List
from contextlib import asynccontextmanager
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from league.database.models import Player, Match
from league.data_models.player import PlayerProfile
from league.utils.exceptions import (
    PlayerNotFoundError, PlayerInUseError, LeagueValidationError, AuthenticationError
)
from league.utils.ranking import RankPolicy, ManualRankPolicy, order_by_rank, move_to_rank
from league.utils.logger import setup_logger

logger = setup_logger(__name__)

# Fields an admin may edit through update_player()
EDITABLE_FIELDS = frozenset({
    'name', 'school_email', 'personal_email', 'phone', 'credential',
    'wins', 'losses', 'previous_rank', 'is_admin', 'discord_id',
})


class PlayerOperations:
    """
    Player directory and administrative player management.

    Ranks are changed only through the configured RankPolicy so the
    1..N density of ranks is preserved after every write.
    """

    def __init__(self, database, rank_policy: Optional[RankPolicy] = None):
        """Initialize with database instance and optional rank policy"""
        self.db = database
        self.rank_policy = rank_policy or ManualRankPolicy()
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

    # ------------------------------------------------------------------
    # Directory contract
    # ------------------------------------------------------------------

    async def get_player(self, player_id: int, session: Optional[AsyncSession] = None) -> Optional[Player]:
        """Get a player by id, or None"""
        async with self._get_session_context(session) as s:
            return await s.get(Player, player_id)

    async def require_player(self, player_id: int, session: Optional[AsyncSession] = None) -> Player:
        """Get a player by id or raise PlayerNotFoundError"""
        player = await self.get_player(player_id, session=session)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    async def get_player_by_discord_id(self, discord_id: int, session: Optional[AsyncSession] = None) -> Optional[Player]:
        """Get the player linked to a Discord account"""
        async with self._get_session_context(session) as s:
            result = await s.execute(select(Player).where(Player.discord_id == discord_id))
            return result.scalar_one_or_none()

    async def list_players(self, session: Optional[AsyncSession] = None) -> List[Player]:
        """List every player ordered by rank"""
        async with self._get_session_context(session) as s:
            result = await s.execute(select(Player).order_by(Player.rank, Player.id))
            return list(result.scalars().all())

    async def save_player(self, player: Player, session: Optional[AsyncSession] = None) -> Player:
        """Insert or update a player record"""
        async with self._get_session_context(session) as s:
            player = await s.merge(player)
            await self._finish(s, session)
            return player

    async def get_player_profile(self, player_id: int, session: Optional[AsyncSession] = None) -> PlayerProfile:
        """Get the public profile of a player"""
        player = await self.require_player(player_id, session=session)
        return PlayerProfile.from_model(player)

    # ------------------------------------------------------------------
    # Administrative CRUD
    # ------------------------------------------------------------------

    async def create_player(
        self,
        name: str,
        school_email: str,
        credential: str,
        personal_email: Optional[str] = None,
        phone: Optional[str] = None,
        is_admin: bool = False,
        discord_id: Optional[int] = None,
        session: Optional[AsyncSession] = None
    ) -> Player:
        """
        Create a player at the bottom of the standings.

        New players are appended at rank N+1 with previous rank N+1, so
        their first leaderboard delta is zero.

        Raises:
            LeagueValidationError: If name/email are blank or already taken
        """
        name = (name or "").strip()
        school_email = (school_email or "").strip().lower()
        if not name:
            raise LeagueValidationError("Player name is required")
        if not school_email:
            raise LeagueValidationError("School email is required")

        async with self._get_session_context(session) as s:
            existing = await s.execute(select(Player).where(Player.school_email == school_email))
            if existing.scalar_one_or_none():
                raise LeagueValidationError(f"A player with email {school_email} already exists")

            players = await self.list_players(session=s)
            bottom = len(players) + 1

            player = Player(
                name=name,
                school_email=school_email,
                credential=credential or "",
                personal_email=personal_email,
                phone=phone,
                is_admin=is_admin,
                discord_id=discord_id,
                wins=0,
                losses=0,
                rank=bottom,
                previous_rank=bottom
            )
            s.add(player)

            try:
                await s.flush()
            except IntegrityError as e:
                raise LeagueValidationError(f"Could not create player: {e.orig}")

            await self._finish(s, session)
            self.logger.info(f"Created Player {player.id} ({player.name}) at rank {player.rank}")
            return player

    async def update_player(self, player_id: int, session: Optional[AsyncSession] = None, **fields) -> Player:
        """
        Update editable fields of a player.

        Rank is not editable here; use set_rank() so the other players shift.
        """
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise LeagueValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}")
        for counter in ('wins', 'losses'):
            if counter in fields and (fields[counter] is None or fields[counter] < 0):
                raise LeagueValidationError(f"{counter} must be a non-negative integer")
        if 'previous_rank' in fields and (fields['previous_rank'] is None or fields['previous_rank'] < 1):
            raise LeagueValidationError("previous_rank must be a positive integer")
        if 'name' in fields and not (fields['name'] or "").strip():
            raise LeagueValidationError("Player name is required")
        if 'school_email' in fields:
            fields['school_email'] = (fields['school_email'] or "").strip().lower()
            if not fields['school_email']:
                raise LeagueValidationError("School email is required")

        async with self._get_session_context(session) as s:
            player = await self.require_player(player_id, session=s)
            for key, value in fields.items():
                setattr(player, key, value)
            try:
                await self._finish(s, session)
            except IntegrityError as e:
                raise LeagueValidationError(f"Could not update player: {e.orig}")
            self.logger.info(f"Updated Player {player_id}: {sorted(k for k in fields if k != 'credential')}")
            return player

    async def delete_player(self, player_id: int, session: Optional[AsyncSession] = None) -> None:
        """
        Delete a player and close the gap their rank leaves behind.

        Raises:
            PlayerNotFoundError: If the player does not exist
            PlayerInUseError: If any match, finished or not, still names the
                player. Scheduled and cancelled matches can be removed with
                delete_match() first; completed ones keep the player for good.
        """
        async with self._get_session_context(session) as s:
            player = await self.require_player(player_id, session=s)

            result = await s.execute(
                select(Match.id).where(
                    (Match.player1_id == player_id) | (Match.player2_id == player_id)
                ).order_by(Match.id)
            )
            match_ids = list(result.scalars().all())
            if match_ids:
                raise PlayerInUseError(player_id, match_ids)

            await s.delete(player)
            await s.flush()

            await self._apply_policy(s)
            await self._finish(s, session)
            self.logger.info(f"Deleted Player {player_id}")

    async def link_discord_account(self, player_id: int, discord_id: int, session: Optional[AsyncSession] = None) -> Player:
        """Attach a Discord account to a player, replacing any previous link"""
        async with self._get_session_context(session) as s:
            other = await self.get_player_by_discord_id(discord_id, session=s)
            if other and other.id != player_id:
                raise LeagueValidationError("This Discord account is already linked to another player")
            player = await self.require_player(player_id, session=s)
            player.discord_id = discord_id
            await self._finish(s, session)
            self.logger.info(f"Linked Discord user {discord_id} to Player {player_id}")
            return player

    # ------------------------------------------------------------------
    # Rank administration
    # ------------------------------------------------------------------

    def _assign(self, players: List[Player]) -> None:
        ranks = self.rank_policy.assign_ranks(players)
        for player in players:
            player.rank = ranks[player.id]

    async def _apply_policy(self, s: AsyncSession) -> None:
        self._assign(await self.list_players(session=s))

    async def set_rank(self, player_id: int, new_rank: int, session: Optional[AsyncSession] = None) -> List[Player]:
        """
        Move a player to ``new_rank``; players in between shift by one.

        The moved order is handed to the rank policy, which has the final
        say on every rank. Returns the players in their new order.
        """
        async with self._get_session_context(session) as s:
            await self.require_player(player_id, session=s)
            players = order_by_rank(await self.list_players(session=s))
            try:
                ranks = move_to_rank([p.id for p in players], player_id, new_rank)
            except ValueError as e:
                raise LeagueValidationError(str(e))

            for player in players:
                player.rank = ranks[player.id]
            self._assign(players)
            await self._finish(s, session)

            self.logger.info(f"Moved Player {player_id} to rank {new_rank} ({self.rank_policy.name} policy)")
            return order_by_rank(players)

    async def set_previous_rank(self, player_id: int, previous_rank: int, session: Optional[AsyncSession] = None) -> Player:
        """Correct the previous-week rank of a single player"""
        return await self.update_player(player_id, session=session, previous_rank=previous_rank)

    async def snapshot_ranks(self, session: Optional[AsyncSession] = None) -> int:
        """
        Start a new week: copy every current rank into previous_rank.

        Returns the number of players snapshotted.
        """
        async with self._get_session_context(session) as s:
            players = await self.list_players(session=s)
            for player in players:
                player.previous_rank = player.rank
            await self._finish(s, session)
            self.logger.info(f"Snapshotted ranks for {len(players)} players")
            return len(players)

    async def normalize_ranks(self, session: Optional[AsyncSession] = None) -> List[Player]:
        """Re-apply the rank policy to every player"""
        async with self._get_session_context(session) as s:
            await self._apply_policy(s)
            await self._finish(s, session)
            return await self.list_players(session=s)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def authenticate(self, school_email: str, credential: str, session: Optional[AsyncSession] = None) -> PlayerProfile:
        """
        Look up a player by email and credential.

        Returns the public profile (without the credential).

        Raises:
            AuthenticationError: If no player matches
        """
        email = (school_email or "").strip().lower()
        async with self._get_session_context(session) as s:
            result = await s.execute(select(Player).where(Player.school_email == email))
            player = result.scalar_one_or_none()

            if player is None or not hmac.compare_digest(
                (player.credential or "").encode('utf-8'), (credential or "").encode('utf-8')
            ):
                self.logger.info(f"Failed authentication attempt for {email}")
                raise AuthenticationError()

            return PlayerProfile.from_model(player)
