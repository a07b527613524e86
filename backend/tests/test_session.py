import asyncio

from partyarcade.services.session import EndReason, HeadlessResourceProvider, Screen, SubmissionStatus
from partyarcade.session import create_session


def test_session_saves_to_the_real_leaderboard(flask_app):
    orch = create_session(flask_app, provider=HeadlessResourceProvider())
    assert orch.transition_duration == 3.0
    assert orch.series[0] == 'wall-shapes'
    orch.load()

    orch.start_quick_game('plumber')
    assert asyncio.run(orch.start_current_game()) is True
    game = orch.state.active_game
    game.add_score(30)
    game.end(EndReason.FAILED)
    assert orch.state.screen is Screen.GAME_OVER

    submission = orch.submit_score('alice')
    assert submission.status is SubmissionStatus.SAVED
    assert submission.result == {'success': True, 'new': True}

    # Same score again does not beat the stored best
    again = orch.submit_score('alice')
    assert again.result['updated'] is False

    orch.show_leaderboard()
    assert orch.state.screen is Screen.LEADERBOARD
    assert orch.state.leaderboard[0]['pseudo'] == 'alice'
    assert orch.state.leaderboard[0]['score'] == 30


def test_invalid_pseudo_is_a_failed_submission(flask_app):
    orch = create_session(flask_app)
    orch.load()
    orch.start_quick_game('plumber')
    asyncio.run(orch.start_current_game())
    orch.state.active_game.end(EndReason.FAILED)

    submission = orch.submit_score('   ')
    assert submission.status is SubmissionStatus.FAILED
    assert submission.error
    assert orch.state.screen is Screen.GAME_OVER
