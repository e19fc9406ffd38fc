import pytest
from flask import g
from flask.testing import FlaskClient

from backend.config import TestConfig
from backend.extensions import db
from backend.server import create_app
from backend.tests.factories import make_job, make_user


class PerRequestAuthClient(FlaskClient):
    """Test client that authenticates every request from its own headers.

    The app fixture keeps one app context pushed for the whole test, so ``g``
    outlives a request and Flask-Login would keep serving the first caller.
    """

    def open(self, *args, **kwargs):
        g.pop('_login_user', None)
        g.pop('identity', None)
        g.pop('fs_authn_via', None)
        g.pop('fs_paa', None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    app.test_client_class = PerRequestAuthClient
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def landlord(app):
    return make_user('landlord')


@pytest.fixture
def contractor(app):
    return make_user('contractor')


@pytest.fixture
def other_contractor(app):
    return make_user('contractor')


@pytest.fixture
def open_job(landlord):
    return make_job(landlord)
