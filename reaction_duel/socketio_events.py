import functools

from flask import current_app, request
from flask_socketio import emit

from reaction_duel.errors import InvalidState, MatchError


def _service():
    return current_app.extensions['reaction_duel']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _field(data, *keys):
    """Read a value sent either bare or as one of several keys of a dict payload."""
    if isinstance(data, dict):
        for key in keys:
            if data.get(key) is not None:
                return data.get(key)
        return None
    return data


def _guarded(action: str):
    """Report request failures to the sender without letting them escape the handler."""
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(*args):
            try:
                return handler(*args)
            except InvalidState as exc:
                current_app.logger.info(f"[ignored] action={action} sid={_get_sid()} reason={exc.message}")
            except MatchError as exc:
                current_app.logger.info(f"[rejected] action={action} sid={_get_sid()} reason={exc.message}")
                emit('error', exc.message)
            except Exception:
                current_app.logger.exception(f"[error] action={action} sid={_get_sid()}")
                emit('error', f'Failed to {action}')
        return wrapper
    return decorator


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    try:
        _service().lobby.leave(sid)
    except Exception:
        current_app.logger.exception(f"[error] action=disconnect sid={sid}")


@_guarded('create lobby')
def handle_create_lobby(data=None):
    _service().lobby.create(_get_sid(), _field(data, 'displayName', 'playerName'))


@_guarded('join lobby')
def handle_join_lobby(data=None):
    if not isinstance(data, dict):
        data = {'matchId': data}
    match_id = _field(data, 'matchId', 'lobbyId')
    _service().lobby.join(_get_sid(), match_id, _field(data, 'displayName', 'playerName'))


@_guarded('toggle ready')
def handle_toggle_ready(data=None):
    _service().lobby.toggle_ready(_get_sid(), _field(data, 'matchId', 'lobbyId'))


@_guarded('start game')
def handle_start_game(data=None):
    _service().engine.start(_get_sid(), _field(data, 'matchId', 'lobbyId'))


@_guarded('process click')
def handle_player_click(data=None):
    _service().engine.click(_get_sid(), _field(data, 'matchId', 'gameId'))


@_guarded('start rematch')
def handle_request_rematch(data=None):
    _service().engine.rematch(_get_sid(), _field(data, 'matchId', 'gameId'))


@_guarded('leave lobby')
def handle_leave_lobby(data=None):
    _service().lobby.leave(_get_sid())


def register_socketio_handlers(socketio, namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createLobby', handle_create_lobby, namespace=namespace)
    socketio.on_event('joinLobby', handle_join_lobby, namespace=namespace)
    socketio.on_event('toggleReady', handle_toggle_ready, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('playerClick', handle_player_click, namespace=namespace)
    socketio.on_event('requestRematch', handle_request_rematch, namespace=namespace)
    socketio.on_event('leaveLobby', handle_leave_lobby, namespace=namespace)
