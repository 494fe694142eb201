import itertools

import pytest

from cinesocial.app import create_app
from cinesocial.cache import reset_global_cache
from cinesocial.models import db
from cinesocial.services import users


@pytest.fixture(autouse=True)
def clean_cache():
    """Fresh metadata cache for every test."""
    reset_global_cache()
    yield
    reset_global_cache()


@pytest.fixture(scope='function')
def app():
    """Flask app on an in-memory database, with an app context pushed."""
    flask_app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    })
    with flask_app.app_context():
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory creating users with unique emails."""
    counter = itertools.count(1)

    def _make(name=None, **profile):
        n = next(counter)
        return users.create_user(name or f"User {n}", f"user{n}@example.com", **profile)

    return _make


@pytest.fixture
def auth_headers():
    """Identity header the upstream authenticator would set for a user."""
    def _headers(user):
        return {"X-User-Email": user.email}
    return _headers
