import logging
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Tuple

from .resources import HeadlessResourceProvider, ResourceAcquisitionError, ResourceHandle, ResourceProvider
from .tutorial import Tutorial

log = logging.getLogger(__name__)


class GamePhase(str, Enum):
    CREATED = 'created'
    INITIALIZING = 'initializing'
    READY = 'ready'
    RUNNING = 'running'
    ENDED = 'ended'
    CLEANED_UP = 'cleaned_up'


class EndReason(str, Enum):
    COMPLETED = 'completed'
    FAILED = 'failed'


class MiniGame(ABC):
    """One unit of gameplay driven by the session orchestrator.

    Lifecycle: ``init`` (async, acquires ``resources``) -> ``start`` ->
    ``update`` once per frame -> ``end`` (at most once) -> ``cleanup``.
    Subclasses provide the tutorial, ``reset`` and ``update``; input from
    keys or detectors arrives through ``on_input``.
    """

    game_id: str = ''
    resources: Tuple[str, ...] = ()

    def __init__(self, orchestrator, provider: Optional[ResourceProvider] = None,
                 rng: Optional[random.Random] = None) -> None:
        self.orchestrator = orchestrator
        self.provider = provider or HeadlessResourceProvider()
        self.rng = rng or random.Random()
        self.phase = GamePhase.CREATED
        self.is_running = False
        self.score = 0
        self.handles: List[ResourceHandle] = []

    @classmethod
    @abstractmethod
    def get_tutorial(cls) -> Tutorial:
        """Title and HTML body of the tutorial screen; no side effects."""

    @abstractmethod
    def reset(self) -> None:
        """Put the rule state back to the start of a game."""

    @abstractmethod
    def update(self, dt: float) -> None:
        """Advance the game by ``dt`` seconds."""

    async def init(self) -> None:
        self.phase = GamePhase.INITIALIZING
        for kind in self.resources:
            try:
                handle = await self.provider.acquire(kind)
            except ResourceAcquisitionError:
                raise
            except Exception as exc:
                raise ResourceAcquisitionError(kind, str(exc)) from exc
            self.handles.append(handle)
        self.phase = GamePhase.READY
        log.info(f"[game-ready] game={self.game_id} resources={list(self.resources)}")

    def start(self) -> None:
        if self.phase is not GamePhase.READY:
            raise RuntimeError(f'{self.game_id} cannot start from phase {self.phase.value}')
        self.score = 0
        self.reset()
        self.phase = GamePhase.RUNNING
        self.is_running = True
        log.info(f"[game-start] game={self.game_id}")

    def pause(self) -> None:
        self.is_running = False

    def resume(self) -> None:
        if self.phase is GamePhase.RUNNING:
            self.is_running = True

    def on_input(self, action: str, **data) -> None:
        log.debug(f"[game-input] game={self.game_id} action={action} ignored")

    def add_score(self, points: int) -> None:
        self.score += points
        self.orchestrator.add_score(points)

    def end(self, reason=EndReason.COMPLETED, final_score: Optional[int] = None) -> None:
        if self.phase in (GamePhase.ENDED, GamePhase.CLEANED_UP):
            return
        self.is_running = False
        self.phase = GamePhase.ENDED
        reason = EndReason(reason)
        log.info(f"[game-end] game={self.game_id} reason={reason.value} score={self.score}")
        self.orchestrator.end_current_game(self.score if final_score is None else final_score, reason)

    def cleanup(self) -> None:
        self.is_running = False
        while self.handles:
            handle = self.handles.pop()
            try:
                handle.release()
            except Exception as exc:
                # Keep releasing the rest; one stuck device must not leak the others
                log.warning(f"[game-cleanup] game={self.game_id} handle={handle!r} error={exc}")
        self.phase = GamePhase.CLEANED_UP
