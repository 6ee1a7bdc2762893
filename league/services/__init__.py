"""
Services package for the league bot.

Session-managed services used by the Discord layer: result confirmation,
standings, leaderboard and match history.
"""

from .base import BaseService
from .rate_limiter import SimpleRateLimiter

__all__ = ['BaseService', 'SimpleRateLimiter']
