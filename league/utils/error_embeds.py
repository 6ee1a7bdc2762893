"""
Centralized error embeds for consistent error handling across the league bot.

League errors already carry a user-facing message, so most command handlers
only need ``ErrorEmbeds.from_error(e)``.
"""

import discord
from typing import Optional

from league.utils.exceptions import (
    LeagueError, NotFoundError, PermissionDeniedError, ConcurrencyError, InvalidStateError
)


class ErrorEmbeds:
    """Centralized error embed factory for consistent error handling."""

    @staticmethod
    def from_error(error: LeagueError) -> discord.Embed:
        """Create embed for a league error using its user message."""
        if isinstance(error, NotFoundError):
            title = "Not Found"
        elif isinstance(error, PermissionDeniedError):
            title = "Permission Denied"
        elif isinstance(error, InvalidStateError):
            title = "Match Closed"
        elif isinstance(error, ConcurrencyError):
            title = "Please Try Again"
        else:
            title = "Request Rejected"

        return discord.Embed(
            title=title,
            description=error.user_message,
            color=discord.Color.orange() if isinstance(error, ConcurrencyError) else discord.Color.red()
        )

    @staticmethod
    def account_not_linked(member: Optional[discord.abc.User] = None) -> discord.Embed:
        """Create embed for when a Discord user is not linked to a player."""
        who = member.mention if member else "Your Discord account"
        return discord.Embed(
            title="Account Not Linked",
            description=f"{who} is not linked to a league player yet.\n\nUse `/link-account` with your school email to link it.",
            color=discord.Color.red()
        )

    @staticmethod
    def no_match_history() -> discord.Embed:
        """Create embed for when a player has no match history."""
        return discord.Embed(
            title="No Match History",
            description="This player hasn't completed any matches yet.",
            color=discord.Color.orange()
        )

    @staticmethod
    def no_open_match() -> discord.Embed:
        return discord.Embed(
            title="No Current Match",
            description="You have no scheduled match right now. Check back when the next week is posted.",
            color=discord.Color.orange()
        )

    @staticmethod
    def command_error(error: str) -> discord.Embed:
        """Create embed for general command errors."""
        return discord.Embed(
            title="Command Error",
            description=f"An error occurred: {error}\n\nPlease try again or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def invalid_input(message: str) -> discord.Embed:
        """Create embed for invalid user input."""
        return discord.Embed(
            title="Invalid Input",
            description=message,
            color=discord.Color.red()
        )

    @staticmethod
    def database_error() -> discord.Embed:
        """Create embed for database-related errors."""
        return discord.Embed(
            title="Database Error",
            description="A database error occurred. Please try again later or contact an administrator.",
            color=discord.Color.red()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        return discord.Embed(
            title="Permission Denied",
            description="You don't have permission to perform this action.",
            color=discord.Color.red()
        )
