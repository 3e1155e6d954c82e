import os
import sys
import pytest

# Ensure the backend root (containing the `platform_drop` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from platform_drop import create_app, db, socketio


T0 = 1_700_000_000_000


class TestConfig:
    TESTING = True
    SCORE_TOKEN_SECRET = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_DISTANCE_PER_SEC = 30.0
    MIN_GAME_DURATION_MS = 1000
    SESSION_EXPIRY_MS = 60 * 60 * 1000
    REAPER_BATCH_SIZE = 500
    LEADERBOARD_DEFAULT_LIMIT = 10
    LEADERBOARD_MAX_LIMIT = 100
    CORS_ORIGINS = ['http://localhost:3000']


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.config['SCORE_CLOCK'] = clock
    with application.app_context():
        # Ensure models are imported so tables are created
        import platform_drop.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def codec(flask_app):
    return flask_app.extensions['token_codec']


@pytest.fixture()
def store(flask_app):
    from platform_drop.services.scores.store import SessionStore
    return SessionStore(db.session)


@pytest.fixture()
def sio_client(flask_app, client):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=client,
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


def claim_for(issued, **overrides):
    """Valid submission payload for an issued session dict."""
    payload = {
        'sessionId': issued['sessionId'],
        'token': issued['token'],
        'issuedAt': issued['issuedAt'],
        'avatarId': 3,
        'initials': 'ABC',
        'distance': 40,
    }
    payload.update(overrides)
    return payload
