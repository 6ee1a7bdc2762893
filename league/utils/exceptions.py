"""
Exceptions for the league core with user-friendly error messages.

Every error carries a developer-facing message (the exception text) and a
``user_message`` that the Discord layer shows verbatim.
"""

class LeagueError(Exception):
    """Base exception for league operations."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class NotFoundError(LeagueError):
    """Raised when a record id is unknown."""

class PlayerNotFoundError(NotFoundError):
    """Raised when a player id is unknown."""
    def __init__(self, player_id):
        self.player_id = player_id
        super().__init__(
            f"Player {player_id} not found",
            "❌ That player is not registered in the league."
        )

class MatchNotFoundError(NotFoundError):
    """Raised when a match id is unknown."""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(
            f"Match {match_id} not found",
            f"❌ Match #{match_id} does not exist."
        )

class NotParticipantError(LeagueError):
    """Raised when the acting player is not one of the two participants."""
    def __init__(self, match_id, player_id):
        self.match_id = match_id
        self.player_id = player_id
        super().__init__(
            f"Player {player_id} is not a participant in Match {match_id}",
            "❌ You are not a participant in this match."
        )

class InvalidStateError(LeagueError):
    """Raised when a match is in the wrong status for the operation."""
    def __init__(self, match_id, status, operation: str = "report a result for"):
        self.match_id = match_id
        self.status = status
        status_value = getattr(status, 'value', status)
        super().__init__(
            f"Cannot {operation} Match {match_id} in status '{status_value}'",
            f"❌ You can't {operation} this match, it is already {status_value.replace('_', ' ')}."
        )

class LeagueValidationError(LeagueError):
    """Raised when input data fails validation."""
    def __init__(self, reason: str):
        super().__init__(reason, f"❌ {reason}")

class AuthenticationError(LeagueError):
    """Raised when credentials do not match a player."""
    def __init__(self):
        super().__init__(
            "Invalid email or credential",
            "❌ Invalid email or password."
        )

class PlayerInUseError(LeagueError):
    """Raised when deleting a player that matches still refer to."""
    def __init__(self, player_id, match_ids):
        self.player_id = player_id
        self.match_ids = list(match_ids)
        super().__init__(
            f"Player {player_id} is referenced by matches {self.match_ids}",
            "❌ This player still appears in matches. Delete their scheduled or cancelled matches first; players with completed matches cannot be removed."
        )

class ConcurrencyError(LeagueError):
    """Raised when a write keeps losing to concurrent writers."""
    def __init__(self, operation: str, attempts: int):
        super().__init__(
            f"{operation} failed after {attempts} attempts due to concurrent updates",
            "❌ Someone else updated this match at the same time. Please try again."
        )

class PermissionDeniedError(LeagueError):
    """Raised when a non-admin attempts an administrative action."""
    def __init__(self, player_id=None):
        self.player_id = player_id
        super().__init__(
            f"Player {player_id} is not an administrator",
            "❌ This action is restricted to league administrators."
        )
