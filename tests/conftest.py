import os

# Must be set before the app module is imported.
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ.setdefault('LOG_LEVEL', 'WARNING')

import pytest

from app import app as flask_app
from models import db


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True)
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
    yield flask_app
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


def _client_for(app, username):
    client = app.test_client()
    resp = client.post('/api/create-user', json={'username': username})
    assert resp.status_code == 200
    return client


@pytest.fixture
def client(app):
    return _client_for(app, 'tester')


@pytest.fixture
def other_client(app):
    return _client_for(app, 'someone-else')
