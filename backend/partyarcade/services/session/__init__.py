"""Session orchestration: the MiniGame contract and the screen state machine."""
from .minigame import EndReason, GamePhase, MiniGame
from .orchestrator import (
    InvalidTransition,
    Screen,
    SessionError,
    SessionOrchestrator,
    SessionState,
    Submission,
    SubmissionStatus,
)
from .registry import GameRegistry, UnknownGameError
from .resources import HeadlessResourceProvider, ResourceAcquisitionError, ResourceHandle, ResourceProvider
from .tutorial import Tutorial

__all__ = [
    'EndReason', 'GamePhase', 'MiniGame',
    'InvalidTransition', 'Screen', 'SessionError', 'SessionOrchestrator', 'SessionState',
    'Submission', 'SubmissionStatus',
    'GameRegistry', 'UnknownGameError',
    'HeadlessResourceProvider', 'ResourceAcquisitionError', 'ResourceHandle', 'ResourceProvider',
    'Tutorial',
]
