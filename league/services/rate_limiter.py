"""
Rate limiting for Discord commands.

Simple in-memory rate limiting using deques and time-based windows.
"""

import time
import asyncio
from functools import wraps
from collections import defaultdict, deque
import logging

from league.config import Config

logger = logging.getLogger(__name__)

class SimpleRateLimiter:
    """In-memory rate limiter keyed by user and command.

    Request history lives in process memory, so limits reset when the bot
    restarts and are not shared between bot processes.
    """

    def __init__(self):
        self._requests = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def is_allowed(self, user_id: int, command: str, limit: int, window: int) -> bool:
        """Check if user can execute command within rate limit."""
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{command}"
        now = time.time()

        async with self._lock:
            # Drop requests that fell out of the window
            while self._requests[key] and self._requests[key][0] <= now - window:
                self._requests[key].popleft()

            if len(self._requests[key]) < limit:
                self._requests[key].append(now)
                return True

            logger.debug(f"Rate limit hit for {key}")
            return False

    def reset(self, user_id: int = None):
        """Forget request history for one user, or everyone"""
        if user_id is None:
            self._requests.clear()
            return
        prefix = f"{user_id}:"
        for key in [k for k in self._requests if k.startswith(prefix)]:
            del self._requests[key]

def rate_limit(command: str, limit: int = 1, window: int = 60):
    """Decorator for rate limiting Discord commands."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            rate_limiter = self.bot.rate_limiter

            # Bot owner bypasses rate limits
            if interaction.user.id == Config.OWNER_DISCORD_ID:
                return await func(self, interaction, *args, **kwargs)

            if not await rate_limiter.is_allowed(interaction.user.id, command, limit, window):
                await interaction.response.send_message(
                    f"⏰ Rate limit exceeded. Please wait before using `/{command}` again.",
                    ephemeral=True
                )
                return

            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
