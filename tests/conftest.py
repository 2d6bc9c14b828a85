import os
import sys
import pytest

# Ensure the project root (containing the `reaction_duel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from reaction_duel import create_app, socketio
from reaction_duel.services import GameService
from reaction_duel.services.notifier import Notifier
from reaction_duel.services.scheduler import BackgroundScheduler, ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['*']
    SOCKETIO_NAMESPACE = '/'
    MATCH_CODE_LENGTH = 6
    DISPLAY_NAME_MAX_LENGTH = 32
    COUNTDOWN_FROM = 3
    COUNTDOWN_INTERVAL_SEC = 1.0
    # Fixed delay so tests know exactly when red turns green
    RED_DELAY_MIN_SEC = 2.0
    RED_DELAY_MAX_SEC = 2.0


class RecordingNotifier(Notifier):
    """Keeps every outbound event instead of sending it."""

    def __init__(self):
        self.sent = []

    def send(self, connection_id, event, payload=None):
        self.sent.append((connection_id, event, payload))

    def payloads(self, connection_id, event):
        return [p for cid, ev, p in self.sent if cid == connection_id and ev == event]

    def events(self, connection_id):
        return [ev for cid, ev, _ in self.sent if cid == connection_id]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def service(flask_app):
    return flask_app.extensions['reaction_duel']


@pytest.fixture()
def sio_factory(flask_app):
    created = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _connect
    for test_client in created:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def game():
    """A standalone service: recording notifier, manual clock, fixed 2s red delay."""
    config = {
        'COUNTDOWN_FROM': 3,
        'COUNTDOWN_INTERVAL_SEC': 1.0,
        'RED_DELAY_MIN_SEC': 2.0,
        'RED_DELAY_MAX_SEC': 2.0,
    }
    return GameService(RecordingNotifier(), ManualScheduler(), config=config)


@pytest.fixture()
def seated(game):
    """Alice (host, 'A') and Bob ('B') in one waiting match."""
    match = game.lobby.create('A', 'Alice')
    game.lobby.join('B', match.id, 'Bob')
    return match


@pytest.fixture()
def counting(game, seated):
    """The seated match right after Bob readied up and the countdown began."""
    game.lobby.toggle_ready('B', seated.id)
    game.notifier.clear()
    return seated


@pytest.fixture()
def live_game(flask_app):
    """A service on real Socket.IO background timers with millisecond phases."""
    config = {
        'COUNTDOWN_FROM': 3,
        'COUNTDOWN_INTERVAL_SEC': 0.02,
        'RED_DELAY_MIN_SEC': 0.05,
        'RED_DELAY_MAX_SEC': 0.05,
    }
    return GameService(RecordingNotifier(), BackgroundScheduler(socketio), config=config)
