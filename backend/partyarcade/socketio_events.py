from flask import request
from flask_socketio import join_room, leave_room, emit
from typing import Dict, Set

from partyarcade import socketio
from partyarcade.api.leaderboard import LEADERBOARD_ROOM


# sids currently watching the leaderboard
_watchers: Set[str] = set()


def _get_sid() -> str:
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    _watchers.discard(_get_sid())


def handle_watch_leaderboard(data=None):
    join_room(LEADERBOARD_ROOM)
    _watchers.add(_get_sid())
    emit('watching', {'room': LEADERBOARD_ROOM, 'watchers': len(_watchers)})


def handle_unwatch_leaderboard(data=None):
    leave_room(LEADERBOARD_ROOM)
    _watchers.discard(_get_sid())
    emit('unwatched', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def watcher_count() -> int:
    return len(_watchers)


HANDLERS: Dict[str, object] = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'watch_leaderboard': handle_watch_leaderboard,
    'unwatch_leaderboard': handle_unwatch_leaderboard,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace='/ws')

    if testing:
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
