from .errors import LeaderboardError, StorageError, ValidationError
from .store import ScoreStore, UpsertOutcome, UpsertResult
from .service import LeaderboardService

__all__ = [
    'LeaderboardError', 'StorageError', 'ValidationError',
    'ScoreStore', 'UpsertOutcome', 'UpsertResult',
    'LeaderboardService',
]
