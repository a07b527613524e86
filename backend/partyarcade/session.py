from typing import Optional

from partyarcade.games import SERIES
from partyarcade.services.leaderboard import LeaderboardService
from partyarcade.services.session import ResourceProvider, SessionOrchestrator


class AppBoundLeaderboard:
    """LeaderboardService for callers outside a request, such as the game loop."""

    def __init__(self, flask_app, service: Optional[LeaderboardService] = None) -> None:
        self.app = flask_app
        self.service = service or LeaderboardService()

    def submit_score(self, pseudo, score) -> dict:
        with self.app.app_context():
            return self.service.submit_score(pseudo, score)

    def get_top(self, limit=None):
        with self.app.app_context():
            return self.service.get_top(limit)


def create_session(flask_app, provider: Optional[ResourceProvider] = None, **kwargs) -> SessionOrchestrator:
    """Orchestrator wired to the app's game registry, leaderboard and settings."""
    kwargs.setdefault('series', SERIES)
    kwargs.setdefault('transition_duration', float(flask_app.config.get('TRANSITION_DURATION_SEC', 3.0)))
    return SessionOrchestrator(
        flask_app.extensions['arcade_registry'],
        leaderboard=AppBoundLeaderboard(flask_app),
        provider=provider,
        **kwargs,
    )
