import os
import sys
import pytest

# Ensure the backend root (containing the `wordduel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordduel import create_app, get_coordinator, socketio
from wordduel.services.matchmaking import MatchCoordinator


SECRET_WORD = 'crane'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    MAX_ATTEMPTS = 6
    LEADERBOARD_SIZE = 10
    GUEST_NAME_PREFIX = 'Guest'
    SESSION_IDLE_TIMEOUT_SEC = 300
    SESSION_REAP_INTERVAL_SEC = 0


class RecordingNotifier:
    """Collects everything the coordinator would send."""

    def __init__(self):
        self.sent = []        # (connection_id, event, payload)
        self.group_sent = []  # (group, event, payload)
        self.broadcasts = []  # (event, payload)
        self.groups = {}

    def send(self, connection_id, event, payload=None):
        self.sent.append((connection_id, event, payload))

    def send_group(self, group, event, payload=None):
        self.group_sent.append((group, event, payload))

    def broadcast(self, event, payload=None):
        self.broadcasts.append((event, payload))

    def join_group(self, connection_id, group):
        self.groups.setdefault(group, set()).add(connection_id)

    def leave_group(self, connection_id, group):
        self.groups.get(group, set()).discard(connection_id)

    def close_group(self, group):
        self.groups.pop(group, None)

    def events_for(self, connection_id, name=None):
        """Unicast and group messages that reached ``connection_id``, in order."""
        got = [(event, payload) for cid, event, payload in self.sent if cid == connection_id]
        got += [(event, payload) for group, event, payload in self.group_sent
                if connection_id in self.groups.get(group, ())]
        if name is not None:
            got = [(e, p) for e, p in got if e == name]
        return got

    def clear(self):
        self.sent.clear()
        self.group_sent.clear()
        self.broadcasts.clear()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def coordinator(notifier):
    return MatchCoordinator(notifier, select_word=lambda: SECRET_WORD, session_idle_timeout=300)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        get_coordinator(application).select_word = lambda: SECRET_WORD
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
        )
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()
