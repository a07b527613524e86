"""Session orchestration: screens, game sequence, mini-game lifecycle.

The orchestrator is the only owner of mini-game instances. It runs on a
single asyncio loop; ``start_current_game`` is the one place it suspends
(while the game acquires its camera/model/audio). Everything else,
including the callbacks games make from inside ``update``, is synchronous.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from partyarcade.services.leaderboard.errors import LeaderboardError
from .minigame import EndReason, GamePhase, MiniGame
from .registry import GameRegistry, UnknownGameError
from .resources import ResourceAcquisitionError, ResourceProvider

log = logging.getLogger(__name__)


class Screen(str, Enum):
    LOADING = 'loading'
    MENU = 'menu'
    TUTORIAL = 'tutorial'
    PLAYING = 'playing'
    TRANSITION = 'transition'
    GAME_OVER = 'gameover'
    LEADERBOARD = 'leaderboard'


# back_to_menu bypasses this table: it is legal from every screen
TRANSITIONS = {
    Screen.LOADING: {Screen.MENU},
    Screen.MENU: {Screen.TUTORIAL, Screen.LEADERBOARD},
    Screen.TUTORIAL: {Screen.PLAYING},
    Screen.PLAYING: {Screen.TRANSITION, Screen.GAME_OVER, Screen.TUTORIAL},
    Screen.TRANSITION: {Screen.TUTORIAL},
    Screen.GAME_OVER: {Screen.MENU, Screen.LEADERBOARD, Screen.TUTORIAL},
    Screen.LEADERBOARD: {Screen.MENU},
}


class SessionError(Exception):
    pass


class InvalidTransition(SessionError):
    def __init__(self, current: Screen, target: Screen, action: str) -> None:
        super().__init__(f'{action}: cannot go from {current.value} to {target.value}')
        self.current = current
        self.target = target


class SubmissionStatus(str, Enum):
    PENDING = 'pending'
    SAVED = 'saved'
    FAILED = 'failed'


@dataclass
class Submission:
    pseudo: str
    score: int
    status: SubmissionStatus
    result: Optional[dict] = None
    error: Optional[str] = None


@dataclass
class SessionState:
    screen: Screen = Screen.LOADING
    sequence: Tuple[str, ...] = ()
    current_index: int = 0
    score: int = 0
    level: int = 1
    active_game: Optional[MiniGame] = None
    error: Optional[str] = None
    last_result: Optional[Tuple[str, int, EndReason]] = None
    submission: Optional[Submission] = None
    leaderboard: Optional[List[dict]] = None
    leaderboard_error: Optional[str] = None
    transition_elapsed: float = 0.0


class SessionOrchestrator:
    def __init__(self, registry: GameRegistry, leaderboard=None,
                 provider: Optional[ResourceProvider] = None,
                 series: Sequence[str] = (), transition_duration: float = 3.0,
                 game_factory_kwargs: Optional[dict] = None) -> None:
        self.registry = registry
        self.leaderboard = leaderboard
        self.provider = provider
        self.series = tuple(series) or tuple(registry.ids())
        self.transition_duration = transition_duration
        self.game_factory_kwargs = game_factory_kwargs or {}
        self.state = SessionState()
        self._listeners: List[Callable[[Screen, SessionState], None]] = []
        self._launch: Optional[asyncio.Task] = None
        self._ticking = False

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------
    def subscribe(self, listener: Callable[[Screen, SessionState], None]) -> None:
        self._listeners.append(listener)

    def _show(self, screen: Screen, action: str, force: bool = False) -> None:
        current = self.state.screen
        if not force and screen not in TRANSITIONS[current]:
            raise InvalidTransition(current, screen, action)
        self.state.screen = screen
        log.info(f"[screen] {current.value} -> {screen.value} ({action})")
        for listener in list(self._listeners):
            listener(screen, self.state)

    def _require(self, screens, action: str, target: Screen) -> None:
        if self.state.screen not in screens:
            raise InvalidTransition(self.state.screen, target, action)

    def load(self) -> None:
        self.registry.validate()
        self._show(Screen.MENU, 'load')

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------
    @property
    def current_game_id(self) -> Optional[str]:
        if not self.state.sequence:
            return None
        return self.state.sequence[self.state.current_index]

    @property
    def current_tutorial(self):
        game_id = self.current_game_id
        return self.registry.get(game_id).get_tutorial() if game_id else None

    def start_session(self, sequence: Sequence[str]) -> None:
        sequence = tuple(sequence)
        if not sequence:
            raise ValueError('A session needs at least one game')
        unknown = [game_id for game_id in sequence if game_id not in self.registry]
        if unknown:
            raise UnknownGameError(', '.join(unknown))
        self._require((Screen.MENU, Screen.GAME_OVER), 'start_session', Screen.TUTORIAL)

        self.state.sequence = sequence
        self.state.current_index = 0
        self.state.score = 0
        self.state.level = 1
        self.state.error = None
        self.state.last_result = None
        self.state.submission = None
        log.info(f"[session-start] sequence={list(sequence)}")
        self._show(Screen.TUTORIAL, 'start_session')

    def start_series(self) -> None:
        self.start_session(self.series)

    def start_quick_game(self, game_id: str) -> None:
        self.start_session([game_id])

    def restart_session(self) -> None:
        self.start_session(self.state.sequence)

    def next_game(self) -> None:
        self._require((Screen.TRANSITION,), 'next_game', Screen.TUTORIAL)
        self.state.current_index += 1
        self.state.transition_elapsed = 0.0
        self._show(Screen.TUTORIAL, 'next_game')

    # ------------------------------------------------------------------
    # Mini-game lifecycle
    # ------------------------------------------------------------------
    async def start_current_game(self) -> bool:
        """Create, initialise and start the game at ``current_index``.

        Returns True once the game runs. Returns False when its resources
        could not be acquired (the tutorial screen comes back with
        ``state.error`` set) or when ``back_to_menu`` abandoned it first.
        """
        self._require((Screen.TUTORIAL,), 'start_current_game', Screen.PLAYING)
        # An abandoned launch must finish its cleanup before a new init begins
        await self._settle_launch()

        game_id = self.current_game_id
        kwargs = dict(self.game_factory_kwargs)
        if self.provider is not None:
            kwargs.setdefault('provider', self.provider)
        game = self.registry.create(game_id, self, **kwargs)
        self.state.active_game = game
        self.state.error = None
        self._show(Screen.PLAYING, 'start_current_game')

        launch = asyncio.ensure_future(self._acquire(game))
        self._launch = launch
        try:
            await launch
        except asyncio.CancelledError:
            # Covers a launch cancelled before init ever ran
            self._release(game)
            if self.state.active_game is not game:
                log.info(f"[game-abandoned] game={game_id} during init")
                return False
            self.state.active_game = None
            self._show(Screen.TUTORIAL, 'init_cancelled', force=True)
            raise
        except ResourceAcquisitionError as exc:
            log.warning(f"[game-init-failed] game={game_id} error={exc}")
            self.state.active_game = None
            self.state.error = str(exc)
            self._show(Screen.TUTORIAL, 'init_failed')
            return False
        finally:
            if self._launch is launch:
                self._launch = None

        if self.state.active_game is not game:
            # Abandoned after init resolved, or init ignored the cancellation
            self._release(game)
            return False
        game.start()
        return True

    async def _acquire(self, game: MiniGame) -> None:
        try:
            await game.init()
        except asyncio.CancelledError:
            self._release(game)
            raise
        except ResourceAcquisitionError:
            self._release(game)
            raise
        except Exception as exc:
            self._release(game)
            raise ResourceAcquisitionError(game.game_id, str(exc)) from exc

    async def _settle_launch(self) -> None:
        launch = self._launch
        if launch is not None and not launch.done():
            await asyncio.wait({launch})

    def _release(self, game: MiniGame) -> None:
        if game.phase is GamePhase.CLEANED_UP:
            return
        game.cleanup()
        log.info(f"[game-cleanup] game={game.game_id}")

    def tick(self, dt: float) -> None:
        """Advance one rendering frame of ``dt`` seconds."""
        if self._ticking:
            raise SessionError('tick() is not re-entrant')
        self._ticking = True
        try:
            screen = self.state.screen
            game = self.state.active_game
            if screen is Screen.PLAYING and game is not None and game.is_running:
                game.update(dt)
            elif screen is Screen.TRANSITION:
                self.state.transition_elapsed += dt
                if self.state.transition_elapsed >= self.transition_duration:
                    self.next_game()
        finally:
            self._ticking = False

    def dispatch(self, action: str, **data) -> None:
        game = self.state.active_game
        if self.state.screen is Screen.PLAYING and game is not None and game.is_running:
            game.on_input(action, **data)

    # ------------------------------------------------------------------
    # Callbacks from the active game
    # ------------------------------------------------------------------
    def add_score(self, points: int) -> None:
        if isinstance(points, bool) or not isinstance(points, int) or points < 0:
            raise ValueError(f'points must be a non-negative integer, got {points!r}')
        self.state.score += points

    def increase_level(self) -> None:
        self.state.level += 1

    def end_current_game(self, final_score: int, reason=EndReason.COMPLETED) -> None:
        game = self.state.active_game
        if game is None:
            log.warning(f"[game-end-ignored] no active game (reason={reason})")
            return
        reason = EndReason(reason)
        game_id = self.current_game_id
        self.state.active_game = None
        self._release(game)
        self.state.last_result = (game_id, final_score, reason)
        log.info(f"[game-over] game={game_id} reason={reason.value} final={final_score} session={self.state.score}")

        has_next = self.state.current_index < len(self.state.sequence) - 1
        if reason is EndReason.COMPLETED and has_next:
            self.state.transition_elapsed = 0.0
            self._show(Screen.TRANSITION, 'end_current_game')
        else:
            self._show(Screen.GAME_OVER, 'end_current_game')

    # ------------------------------------------------------------------
    # Abort path
    # ------------------------------------------------------------------
    def back_to_menu(self) -> None:
        game = self.state.active_game
        self.state.active_game = None
        if game is not None:
            launch = self._launch
            if launch is not None and not launch.done():
                # _acquire releases the game when the cancellation lands
                launch.cancel()
            else:
                self._release(game)
        self.state.error = None
        self._show(Screen.MENU, 'back_to_menu', force=True)

    # ------------------------------------------------------------------
    # Leaderboard
    # ------------------------------------------------------------------
    def submit_score(self, pseudo: str) -> Submission:
        """Offer the session score to the leaderboard; failures stay on screen and can be retried."""
        self._require((Screen.GAME_OVER,), 'submit_score', Screen.GAME_OVER)
        if self.leaderboard is None:
            raise SessionError('No leaderboard configured')
        score = self.state.score
        self.state.submission = Submission(pseudo, score, SubmissionStatus.PENDING)
        try:
            result = self.leaderboard.submit_score(pseudo, score)
        except LeaderboardError as exc:
            log.warning(f"[submit-failed] pseudo={pseudo} score={score} error={exc}")
            self.state.submission = Submission(pseudo, score, SubmissionStatus.FAILED, error=str(exc))
        else:
            self.state.submission = Submission(pseudo, score, SubmissionStatus.SAVED, result=result)
        return self.state.submission

    def show_leaderboard(self, limit: Optional[int] = None) -> None:
        self._require((Screen.MENU, Screen.GAME_OVER), 'show_leaderboard', Screen.LEADERBOARD)
        if self.leaderboard is None:
            raise SessionError('No leaderboard configured')
        try:
            self.state.leaderboard = self.leaderboard.get_top(limit)
            self.state.leaderboard_error = None
        except LeaderboardError as exc:
            log.warning(f"[leaderboard-failed] error={exc}")
            self.state.leaderboard = None
            self.state.leaderboard_error = 'Could not reach the leaderboard'
        self._show(Screen.LEADERBOARD, 'show_leaderboard')
