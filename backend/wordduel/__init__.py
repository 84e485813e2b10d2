from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

EXTENSION_KEY = 'wordduel'


def get_coordinator(app=None):
    """Return the MatchCoordinator bound to ``app`` (or the current app)."""
    return (app or current_app).extensions[EXTENSION_KEY]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS', '*')
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    CORS(flask_app, origins=origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    # One coordinator per app: queue, sessions and leaderboard live here
    from wordduel.services.matchmaking import Leaderboard, MatchCoordinator
    from wordduel.socketio_events import SocketIONotifier, register_socketio_handlers, start_session_reaper

    coordinator = MatchCoordinator(
        SocketIONotifier(socketio, namespace=namespace),
        leaderboard=Leaderboard(max_size=int(flask_app.config.get('LEADERBOARD_SIZE', 10))),
        guest_prefix=flask_app.config.get('GUEST_NAME_PREFIX', 'Guest'),
        session_idle_timeout=float(flask_app.config.get('SESSION_IDLE_TIMEOUT_SEC', 0)),
    )
    flask_app.extensions[EXTENSION_KEY] = coordinator

    from wordduel.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers on the initialized socketio instance
    register_socketio_handlers(coordinator, namespace=namespace)
    start_session_reaper(flask_app, coordinator)

    @click.command('reap-sessions')
    def reap_sessions_command():
        """Removes abandoned and long-finished sessions once."""
        reaped = get_coordinator(flask_app).reap()
        click.echo(f'Reaped {len(reaped)} session(s).')

    flask_app.cli.add_command(reap_sessions_command)

    flask_app.logger.info(f"Word duel server ready on namespace {namespace}")
    return flask_app
