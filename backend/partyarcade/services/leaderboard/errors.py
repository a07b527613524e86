class LeaderboardError(Exception):
    """Base class for everything the leaderboard can refuse or fail on."""


class ValidationError(LeaderboardError):
    """Malformed client input: missing pseudo, non-numeric score, bad limit."""


class StorageError(LeaderboardError):
    """The database could not be reached or the query failed."""
