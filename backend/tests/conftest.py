import os
import sys
import pytest
import fakeredis
from flask import g

# Ensure the backend root (containing the `wordtrail` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from wordtrail import create_app, db, socketio, redis_store


WORDS = 'lion, tiger, bear, wolf, fox, sea lion, otter, eagle, shark, whale'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    REDIS_URL = 'redis://localhost:6379/15'
    REDIS_CLIENT_CLASS = fakeredis.FakeRedis
    CREATE_RETRY_LIMIT = 5
    PLAY_RETRY_LIMIT = 3
    DELETE_RETRY_LIMIT = 5
    BULK_DELETE_RETRY_LIMIT = 5
    POST_DELETE_RETRY_LIMIT = 5
    JANITOR_RETRY_LIMIT = 5
    MAX_CATEGORIES_PER_USER = 10
    MAX_CATEGORIES_PER_MODERATOR = 999
    MODERATOR_ONLY_CATEGORIES = False
    CATEGORY_PAGE_SIZE = 500
    JANITOR_PAGE_SIZE = 2
    JANITOR_INTERVAL_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)

    @application.before_request
    def _forget_cached_login():
        # Requests reuse the fixture's app context, so g outlives each request
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import wordtrail.models  # noqa: F401
        db.create_all()
        redis_store.client.flushall()
        yield application
        redis_store.client.flushall()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def store(flask_app):
    return redis_store.client


@pytest.fixture()
def host(flask_app):
    from wordtrail.services.host import HostPlatform
    return HostPlatform()


@pytest.fixture()
def lifecycle(flask_app, store, host):
    from wordtrail.services.categories.lifecycle import CategoryLifecycle
    return CategoryLifecycle(store, host, flask_app.config)


@pytest.fixture()
def make_user(flask_app):
    from wordtrail.models import User

    def _make(username, is_moderator=False, password='password'):
        user = User(username=username, is_moderator=is_moderator)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def login(flask_app, make_user):
    """Returns a test client logged in as a freshly created user."""

    def _login(username, is_moderator=False):
        user = make_user(username, is_moderator=is_moderator)
        test_client = flask_app.test_client()
        res = test_client.post('/login', json={'username': username, 'password': 'password'})
        assert res.status_code == 200
        return test_client, user

    return _login


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
