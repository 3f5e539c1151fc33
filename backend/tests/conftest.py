import os
import sys
import pytest

# Ensure the backend root (containing the `whodidit` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from whodidit import create_app, db, socketio
from whodidit.services.games import engine


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TOTAL_ROUNDS = 5
    MIN_PLAYERS = 2
    MAX_PLAYERS = 12
    CORRECT_GUESS_POINTS = 100


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import whodidit.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['game_store']


@pytest.fixture()
def new_game(store):
    """Factory: create a game hosted by ``host`` and join ``guests``.

    Returns ``(code, players)`` with the host first.
    """
    def _new_game(*guests, host='Alice', total_rounds=5):
        game, host_player = engine.create_game(store, host, total_rounds)
        players = [host_player]
        for name in guests:
            players.append(engine.join_game(store, game['code'], name))
        return game['code'], players
    return _new_game


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
