from flask_socketio import join_room, leave_room, emit
from platform_drop import socketio
from typing import Any, Dict

LEADERBOARD_ROOM = 'leaderboard'
NAMESPACE = '/ws'


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_leaderboard(_data=None):
    join_room(LEADERBOARD_ROOM)
    emit('joined', {'room': LEADERBOARD_ROOM})


def handle_leave_leaderboard(_data=None):
    leave_room(LEADERBOARD_ROOM)
    emit('left', {'room': LEADERBOARD_ROOM})


def handle_ping(data):
    emit('pong', data or {})


def broadcast_leaderboard_update(entry: Dict[str, Any]) -> None:
    """Push a newly accepted entry to everyone watching the leaderboard."""
    # socketio.emit works outside a socket request context (HTTP routes, tasks)
    socketio.emit('leaderboard_update', entry, to=LEADERBOARD_ROOM, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('join_leaderboard', handle_join_leaderboard, namespace=NAMESPACE)
    socketio.on_event('leave_leaderboard', handle_leave_leaderboard, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
