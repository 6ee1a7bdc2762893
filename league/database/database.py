from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import select, func
from contextlib import asynccontextmanager

from league.config import Config
from league.database.models import Base, Player, Match, MatchStatus
from league.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    @property
    def session_factory(self) -> async_sessionmaker:
        """Session factory shared with the service layer"""
        if self.async_session is None:
            raise RuntimeError("Database is not initialized")
        return self.async_session

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        database_url = self.database_url or Config.get_database_url()
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure.

        Usage:
            async with db.transaction() as session:
                await player_ops.create_player(..., session=session)
                await match_ops.schedule_match(..., session=session)

        The caller is responsible for passing the yielded session to all
        participating operations. Exceptions must propagate out of the
        context for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    async def get_table_counts(self) -> dict:
        """Row counts used by the admin statistics command"""
        async with self.get_session() as session:
            player_count = await session.scalar(select(func.count(Player.id)))
            match_count = await session.scalar(select(func.count(Match.id)))
            open_count = await session.scalar(
                select(func.count(Match.id)).where(
                    Match.status.in_([MatchStatus.SCHEDULED, MatchStatus.AWAITING_CONFIRMATION])
                )
            )
            return {
                'players': player_count or 0,
                'matches': match_count or 0,
                'open_matches': open_count or 0,
            }
