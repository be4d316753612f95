import os
import sys
import pytest

# Ensure the backend root (containing the `escape_room` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from escape_room import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_PLAYERS_PER_ROOM = 4
    STRICT_ROOM_TRANSITIONS = True


class LegacyTransitionsConfig(TestConfig):
    STRICT_ROOM_TRANSITIONS = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def legacy_app():
    application = create_app(LegacyTransitionsConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['room_store']


@pytest.fixture()
def make_sio_client(flask_app):
    """Factory for extra Socket.IO clients; all are disconnected afterwards."""
    created = []

    def _make(app=None):
        target = app or flask_app
        test_client = socketio.test_client(target, flask_test_client=target.test_client())
        created.append(test_client)
        return test_client

    yield _make
    for test_client in created:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()
