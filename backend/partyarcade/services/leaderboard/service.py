import math
from typing import List, Optional

from flask import current_app

from partyarcade.models import PSEUDO_MAX_LENGTH
from .errors import ValidationError
from .store import ScoreStore, UpsertOutcome

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class LeaderboardService:
    """Validates leaderboard requests and shapes ScoreStore results for the wire.

    Used by the HTTP blueprint and, in process, by the session orchestrator.
    Needs an application context.
    """

    def __init__(self, store: Optional[ScoreStore] = None) -> None:
        self.store = store or ScoreStore()

    def submit_score(self, pseudo, score) -> dict:
        """Record ``score`` for ``pseudo`` if it beats the stored best.

        Returns ``{"success": True, "new": True}`` for a first entry,
        ``{"success": True, "updated": True, "oldScore": n}`` when the best
        improved and ``{"success": True, "updated": False, "message": ...}``
        otherwise. Raises ValidationError or StorageError.
        """
        pseudo = self._clean_pseudo(pseudo)
        score = self._clean_score(score)
        result = self.store.upsert_best(pseudo, score)
        if result.outcome is UpsertOutcome.CREATED:
            return {'success': True, 'new': True}
        if result.outcome is UpsertOutcome.UPDATED:
            return {'success': True, 'updated': True, 'oldScore': result.previous_score}
        return {'success': True, 'updated': False, 'message': 'Existing score is better'}

    def get_top(self, limit=None) -> List[dict]:
        limit = self._clean_limit(limit)
        return [entry.to_dict() for entry in self.store.list_top(limit)]

    def get_player_rank(self, pseudo) -> Optional[dict]:
        # Names that could never have been stored are simply not found
        if not isinstance(pseudo, str) or not pseudo.strip() or len(pseudo.strip()) > PSEUDO_MAX_LENGTH:
            return None
        return self.store.get_rank(pseudo.strip())

    @staticmethod
    def _clean_pseudo(pseudo) -> str:
        if not isinstance(pseudo, str) or not pseudo.strip():
            raise ValidationError('Pseudo and score are required')
        pseudo = pseudo.strip()
        if len(pseudo) > PSEUDO_MAX_LENGTH:
            raise ValidationError(f'Pseudo must be at most {PSEUDO_MAX_LENGTH} characters')
        return pseudo

    @staticmethod
    def _clean_score(score) -> int:
        # bool is an int subclass; JSON true/false is not a score
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ValidationError('Pseudo and score are required')
        if isinstance(score, float):
            if not math.isfinite(score) or not score.is_integer():
                raise ValidationError('Score must be a whole number')
            score = int(score)
        if score < 0:
            raise ValidationError('Score must not be negative')
        return score

    @staticmethod
    def _clean_limit(limit) -> int:
        cfg = current_app.config
        if limit is None:
            return int(cfg.get('LEADERBOARD_DEFAULT_LIMIT', DEFAULT_LIMIT))
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ValidationError('Limit must be an integer')
        if limit <= 0:
            raise ValidationError('Limit must be positive')
        return min(limit, int(cfg.get('LEADERBOARD_MAX_LIMIT', MAX_LIMIT)))
