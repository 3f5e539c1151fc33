from flask import current_app
from flask_socketio import join_room, leave_room, emit
from whodidit import socketio
from whodidit.services.games.codes import normalize_game_code


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_join_game(data):
    """Subscribe this socket to a game's change notifications."""
    game_code = normalize_game_code((data or {}).get('game_code'))
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = f"game:{game_code}"
    join_room(room)
    emit('joined', {'room': room})
    # Prompt an initial full fetch, same as any later change
    emit('state_update', {'game_code': game_code})
    current_app.logger.info(f"[subscribe] game={game_code}")


def handle_leave_game(data):
    game_code = normalize_game_code((data or {}).get('game_code'))
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = f"game:{game_code}"
    leave_room(room)
    emit('left', {'room': room})
    current_app.logger.info(f"[unsubscribe] game={game_code}")


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
