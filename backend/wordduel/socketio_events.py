from typing import Any, Optional

from flask import current_app, request
from flask_socketio import SocketIO, emit
from pydantic import ValidationError

from wordduel import socketio
from wordduel.events import ERROR, describe_validation_error, parse_inbound
from wordduel.services.matchmaking import MatchCoordinator


class SocketIONotifier:
    """Delivers coordinator output over Flask-SocketIO.

    Connection ids are Socket.IO session ids and groups are Socket.IO rooms,
    so the core never holds a socket object.
    """

    def __init__(self, sio: SocketIO, namespace: str = '/'):
        self.sio = sio
        self.namespace = namespace

    def _emit(self, event: str, payload: Any, **kwargs) -> None:
        args = () if payload is None else (payload,)
        self.sio.emit(event, *args, namespace=self.namespace, **kwargs)

    def send(self, connection_id: str, event: str, payload: Any = None) -> None:
        self._emit(event, payload, to=connection_id)

    def send_group(self, group: str, event: str, payload: Any = None) -> None:
        self._emit(event, payload, to=group)

    def broadcast(self, event: str, payload: Any = None) -> None:
        self._emit(event, payload)

    def join_group(self, connection_id: str, group: str) -> None:
        self.sio.server.enter_room(connection_id, group, namespace=self.namespace)

    def leave_group(self, connection_id: str, group: str) -> None:
        self.sio.server.leave_room(connection_id, group, namespace=self.namespace)

    def close_group(self, group: str) -> None:
        self.sio.close_room(group, namespace=self.namespace)


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _parse(event: str, data: Any):
    """Validate an inbound payload; emits ``error`` and returns None when invalid."""
    try:
        return parse_inbound(event, data, max_attempts=current_app.config.get('MAX_ATTEMPTS', 6))
    except ValidationError as exc:
        current_app.logger.info(f"[bad-payload] {event} from {_get_sid()}: {exc.error_count()} error(s)")
        emit(ERROR, {'message': f'Invalid {event} payload: {describe_validation_error(exc)}'})
        return None


def register_socketio_handlers(coordinator: MatchCoordinator, namespace: str = '/') -> None:
    """Register Socket.IO event handlers bound to ``coordinator``."""

    def handle_connect(auth=None):
        coordinator.connect(_get_sid())

    def handle_disconnect(reason=None):
        coordinator.disconnect(_get_sid())

    def handle_find_game(data=None):
        event = _parse('findGame', data)
        if event is not None:
            coordinator.request_match(_get_sid(), event.name)

    def handle_i_won(data=None):
        event = _parse('iWon', data)
        if event is not None:
            coordinator.report_won(_get_sid(), event.attempts)

    def handle_all_attempts_used(data=None):
        event = _parse('allAttemptsUsed', data)
        if event is not None:
            coordinator.report_exhausted(_get_sid(), event.attempts)

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('findGame', handle_find_game, namespace=namespace)
    socketio.on_event('iWon', handle_i_won, namespace=namespace)
    socketio.on_event('allAttemptsUsed', handle_all_attempts_used, namespace=namespace)


def start_session_reaper(app, coordinator: MatchCoordinator) -> Optional[object]:
    """Sweep finished sessions every SESSION_REAP_INTERVAL_SEC.

    No-ops in TESTING mode or when the interval is 0.
    """
    interval = int(app.config.get('SESSION_REAP_INTERVAL_SEC', 0))
    if interval <= 0 or app.config.get('TESTING'):
        return None

    def _runner():
        while True:
            socketio.sleep(interval)
            try:
                coordinator.reap()
            except Exception:
                app.logger.exception("[reap] sweep failed")

    app.logger.info(f"[reap] sweeping sessions every {interval}s")
    return socketio.start_background_task(_runner)
