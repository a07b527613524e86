import asyncio

import pytest

from partyarcade.services.leaderboard import StorageError
from partyarcade.services.session import (
    EndReason,
    GamePhase,
    GameRegistry,
    HeadlessResourceProvider,
    InvalidTransition,
    MiniGame,
    ResourceAcquisitionError,
    ResourceHandle,
    ResourceProvider,
    Screen,
    SessionError,
    SessionOrchestrator,
    SubmissionStatus,
    Tutorial,
    UnknownGameError,
)


class FakeGame(MiniGame):
    game_id = 'fake-a'
    resources = ('camera', 'model')

    live = 0
    max_live = 0
    cleanups = 0

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        FakeGame.live += 1
        FakeGame.max_live = max(FakeGame.max_live, FakeGame.live)
        self.frames = 0
        self.inputs = []

    @classmethod
    def get_tutorial(cls):
        return Tutorial(cls.game_id, '<p>play</p>')

    def reset(self):
        self.frames = 0

    def update(self, dt):
        self.frames += 1

    def on_input(self, action, **data):
        self.inputs.append((action, data))

    def cleanup(self):
        if self.phase is not GamePhase.CLEANED_UP:
            FakeGame.live -= 1
            FakeGame.cleanups += 1
        super().cleanup()


class OtherFakeGame(FakeGame):
    game_id = 'fake-b'


class GatedProvider(ResourceProvider):
    """Hands out the camera at once and holds the model until the gate opens."""

    def __init__(self):
        self.gate = None
        self.handles = []

    async def acquire(self, kind):
        if kind == 'model':
            self.gate = asyncio.Event()
            await self.gate.wait()
        handle = ResourceHandle(kind)
        self.handles.append(handle)
        return handle


class FailingProvider(ResourceProvider):
    def __init__(self, exc):
        self.exc = exc

    async def acquire(self, kind):
        raise self.exc


class FakeLeaderboard:
    def __init__(self):
        self.saved = []
        self.fail_next = 0

    def submit_score(self, pseudo, score):
        if self.fail_next:
            self.fail_next -= 1
            raise StorageError('leaderboard storage failure during upsert')
        self.saved.append((pseudo, score))
        return {'success': True, 'new': True}

    def get_top(self, limit=None):
        if self.fail_next:
            raise StorageError('leaderboard storage failure during list')
        return [{'pseudo': p, 'score': s, 'date': None} for p, s in self.saved][:limit or 10]


@pytest.fixture(autouse=True)
def reset_counters():
    FakeGame.live = 0
    FakeGame.max_live = 0
    FakeGame.cleanups = 0


@pytest.fixture()
def registry():
    reg = GameRegistry()
    reg.register(FakeGame)
    reg.register(OtherFakeGame)
    return reg


@pytest.fixture()
def orchestrator(registry):
    orch = SessionOrchestrator(registry, leaderboard=FakeLeaderboard(),
                               provider=HeadlessResourceProvider(), transition_duration=3.0)
    orch.load()
    return orch


def play(orch):
    return asyncio.run(orch.start_current_game())


def test_load_shows_menu(registry):
    orch = SessionOrchestrator(registry)
    assert orch.state.screen is Screen.LOADING
    orch.load()
    assert orch.state.screen is Screen.MENU
    assert orch.series == ('fake-a', 'fake-b')


def test_two_game_series_runs_through_transition(orchestrator):
    seen = []
    orchestrator.subscribe(lambda screen, state: seen.append(screen))
    orchestrator.start_session(['fake-a', 'fake-b'])
    assert orchestrator.current_tutorial.title == 'fake-a'

    assert play(orchestrator) is True
    game = orchestrator.state.active_game
    assert orchestrator.state.screen is Screen.PLAYING
    assert game.phase is GamePhase.RUNNING
    orchestrator.tick(0.016)
    assert game.frames == 1

    game.add_score(40)
    game.end(EndReason.COMPLETED)
    assert orchestrator.state.screen is Screen.TRANSITION
    assert orchestrator.state.active_game is None
    assert game.phase is GamePhase.CLEANED_UP
    assert orchestrator.state.last_result == ('fake-a', 40, EndReason.COMPLETED)

    orchestrator.tick(1.0)
    assert orchestrator.state.screen is Screen.TRANSITION
    orchestrator.tick(2.0)
    assert orchestrator.state.screen is Screen.TUTORIAL
    assert orchestrator.current_game_id == 'fake-b'

    assert play(orchestrator) is True
    second = orchestrator.state.active_game
    second.add_score(60)
    second.end(EndReason.COMPLETED)
    assert orchestrator.state.screen is Screen.GAME_OVER
    assert orchestrator.state.score == 100
    assert FakeGame.live == 0
    assert FakeGame.max_live == 1
    assert seen == [Screen.TUTORIAL, Screen.PLAYING, Screen.TRANSITION, Screen.TUTORIAL,
                    Screen.PLAYING, Screen.GAME_OVER]


def test_failed_game_ends_the_session(orchestrator):
    orchestrator.start_series()
    play(orchestrator)
    orchestrator.state.active_game.end(EndReason.FAILED)
    assert orchestrator.state.screen is Screen.GAME_OVER
    assert orchestrator.state.current_index == 0


def test_end_is_reported_once(orchestrator):
    orchestrator.start_quick_game('fake-a')
    play(orchestrator)
    game = orchestrator.state.active_game
    game.end()
    game.end(EndReason.FAILED)
    assert orchestrator.state.last_result[2] is EndReason.COMPLETED
    assert FakeGame.cleanups == 1


def test_back_to_menu_during_init_cleans_up_once(registry):
    provider = GatedProvider()
    orch = SessionOrchestrator(registry, provider=provider)
    orch.load()
    orch.start_quick_game('fake-a')

    async def scenario():
        launch = asyncio.ensure_future(orch.start_current_game())
        for _ in range(100):
            if provider.gate is not None:
                break
            await asyncio.sleep(0)
        pending = orch.state.active_game
        assert pending.phase is GamePhase.INITIALIZING
        orch.back_to_menu()
        assert orch.state.screen is Screen.MENU
        return pending, await launch

    pending, started = asyncio.run(scenario())

    assert started is False
    assert pending.phase is GamePhase.CLEANED_UP
    assert not pending.is_running
    assert FakeGame.cleanups == 1
    assert all(handle.released for handle in provider.handles)
    assert orch.state.active_game is None

    # A fresh launch afterwards never overlaps the abandoned one
    orch.provider = HeadlessResourceProvider()
    orch.start_quick_game('fake-b')
    assert play(orch) is True
    assert FakeGame.max_live == 1
    orch.back_to_menu()
    assert FakeGame.cleanups == 2
    assert FakeGame.live == 0


def test_back_to_menu_while_playing_releases_the_game(orchestrator):
    orchestrator.start_quick_game('fake-a')
    play(orchestrator)
    game = orchestrator.state.active_game
    handles = list(game.handles)
    orchestrator.back_to_menu()
    assert orchestrator.state.screen is Screen.MENU
    assert game.phase is GamePhase.CLEANED_UP
    assert handles and all(h.released for h in handles)
    # A stray end from the abandoned game is ignored
    orchestrator.end_current_game(10, EndReason.COMPLETED)
    assert orchestrator.state.screen is Screen.MENU


def test_back_to_menu_from_any_screen(orchestrator):
    orchestrator.start_quick_game('fake-a')
    orchestrator.back_to_menu()
    assert orchestrator.state.screen is Screen.MENU
    orchestrator.show_leaderboard()
    orchestrator.back_to_menu()
    assert orchestrator.state.screen is Screen.MENU


def test_init_failure_returns_to_tutorial(registry):
    orch = SessionOrchestrator(registry, provider=FailingProvider(
        ResourceAcquisitionError('camera', 'permission denied')))
    orch.load()
    orch.start_quick_game('fake-a')

    assert play(orch) is False
    assert orch.state.screen is Screen.TUTORIAL
    assert 'permission denied' in orch.state.error
    assert orch.state.active_game is None
    assert FakeGame.cleanups == 1

    # The player can retry from the tutorial
    orch.provider = HeadlessResourceProvider()
    assert play(orch) is True
    assert orch.state.error is None


def test_unexpected_init_error_is_wrapped(registry):
    orch = SessionOrchestrator(registry, provider=FailingProvider(RuntimeError('model download failed')))
    orch.load()
    orch.start_quick_game('fake-a')
    assert play(orch) is False
    assert 'model download failed' in orch.state.error
    assert FakeGame.live == 0


def test_submit_failure_is_non_fatal_and_retriable(orchestrator):
    orchestrator.start_quick_game('fake-a')
    play(orchestrator)
    orchestrator.state.active_game.add_score(70)
    orchestrator.state.active_game.end()
    orchestrator.leaderboard.fail_next = 1

    first = orchestrator.submit_score('alice')
    assert first.status is SubmissionStatus.FAILED
    assert first.error
    assert orchestrator.state.screen is Screen.GAME_OVER

    second = orchestrator.submit_score('alice')
    assert second.status is SubmissionStatus.SAVED
    assert second.result == {'success': True, 'new': True}
    assert orchestrator.leaderboard.saved == [('alice', 70)]


def test_show_leaderboard_failure_keeps_screen_usable(orchestrator):
    orchestrator.leaderboard.fail_next = 1
    orchestrator.show_leaderboard()
    assert orchestrator.state.screen is Screen.LEADERBOARD
    assert orchestrator.state.leaderboard is None
    assert orchestrator.state.leaderboard_error == 'Could not reach the leaderboard'
    orchestrator.back_to_menu()
    assert orchestrator.state.screen is Screen.MENU


def test_restart_from_game_over(orchestrator):
    orchestrator.start_session(['fake-b'])
    play(orchestrator)
    orchestrator.state.active_game.add_score(5)
    orchestrator.state.active_game.end(EndReason.FAILED)
    orchestrator.restart_session()
    assert orchestrator.state.screen is Screen.TUTORIAL
    assert orchestrator.state.score == 0
    assert orchestrator.state.sequence == ('fake-b',)


def test_invalid_transitions_are_rejected(orchestrator):
    with pytest.raises(InvalidTransition):
        orchestrator.next_game()
    with pytest.raises(InvalidTransition):
        play(orchestrator)
    with pytest.raises(InvalidTransition):
        orchestrator.submit_score('alice')
    with pytest.raises(InvalidTransition):
        orchestrator.load()
    with pytest.raises(ValueError):
        orchestrator.start_session([])
    with pytest.raises(UnknownGameError):
        orchestrator.start_session(['nope'])
    assert orchestrator.state.screen is Screen.MENU


def test_add_score_rejects_negative_points(orchestrator):
    with pytest.raises(ValueError):
        orchestrator.add_score(-1)
    with pytest.raises(ValueError):
        orchestrator.add_score(True)
    orchestrator.add_score(3)
    orchestrator.increase_level()
    assert orchestrator.state.score == 3
    assert orchestrator.state.level == 2


def test_dispatch_reaches_only_the_running_game(orchestrator):
    orchestrator.dispatch('jump')
    orchestrator.start_quick_game('fake-a')
    play(orchestrator)
    game = orchestrator.state.active_game
    orchestrator.dispatch('jump', height=2)
    game.pause()
    orchestrator.dispatch('jump')
    orchestrator.tick(0.1)
    game.resume()
    orchestrator.tick(0.1)
    assert game.inputs == [('jump', {'height': 2})]
    assert game.frames == 1


def test_tick_is_not_reentrant(registry):
    class ReentrantGame(FakeGame):
        game_id = 'reentrant'

        def update(self, dt):
            self.orchestrator.tick(dt)

    registry.register(ReentrantGame)
    orch = SessionOrchestrator(registry, provider=HeadlessResourceProvider())
    orch.load()
    orch.start_quick_game('reentrant')
    play(orch)
    with pytest.raises(SessionError):
        orch.tick(0.016)


def test_registry_rejects_bad_games(registry):
    class Incomplete(MiniGame):
        game_id = 'incomplete'

    class Untitled(FakeGame):
        game_id = 'untitled'

        @classmethod
        def get_tutorial(cls):
            return Tutorial('', '<p>x</p>')

    with pytest.raises(ValueError):
        registry.register(FakeGame)
    with pytest.raises(TypeError):
        registry.register(Incomplete)
    with pytest.raises(TypeError):
        registry.register(dict, 'dict')
    with pytest.raises(ValueError):
        registry.register(object)
    with pytest.raises(UnknownGameError):
        registry.get('missing')
    with pytest.raises(ValueError):
        GameRegistry().validate()

    registry.register(Untitled)
    with pytest.raises(ValueError):
        registry.validate()
    assert 'untitled' in registry
    assert len(registry) == 3


def test_cancelled_launch_returns_to_tutorial(registry):
    provider = GatedProvider()
    orch = SessionOrchestrator(registry, provider=provider)
    orch.load()
    orch.start_quick_game('fake-a')

    async def scenario():
        launch = asyncio.ensure_future(orch.start_current_game())
        for _ in range(100):
            if provider.gate is not None:
                break
            await asyncio.sleep(0)
        pending = orch.state.active_game
        launch.cancel()
        with pytest.raises(asyncio.CancelledError):
            await launch
        return pending

    pending = asyncio.run(scenario())

    assert orch.state.screen is Screen.TUTORIAL
    assert orch.state.active_game is None
    assert pending.phase is GamePhase.CLEANED_UP
    assert FakeGame.cleanups == 1

    orch.provider = HeadlessResourceProvider()
    assert play(orch) is True
    assert FakeGame.max_live == 1
