import json
import os
import sys
import pytest

# Ensure the backend root (containing the `hackduel` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from hackduel import create_app, db, socketio
from hackduel.auth import issue_token
from hackduel.models import AttendeeProfile, Duel

HOST_ID = 'google12345'
GUEST_ID = 'google67890'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    JWT_SECRET = 'test-jwt-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_DUELS_PER_PAIR = 5
    WINNING_SCORE = 3
    WINNING_POINTS = 5
    PARTICIPATION_POINTS = 1
    MAX_SCORING_DUELS = 25
    DUEL_COMMIT_RETRIES = 3


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Requests push their own app context so flask-login's per-context user
    # cache never leaks between requests made with different tokens.
    with application.app_context():
        import hackduel.models  # noqa: F401
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


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


@pytest.fixture()
def auth_header(flask_app):
    def _make(user_id, roles=('USER',)):
        with flask_app.app_context():
            token = issue_token(user_id, roles)
        return {'Authorization': f'Bearer {token}'}
    return _make


def add_profile(user_id, stats=None, points=0):
    """Insert a profile; stats=None leaves duel_stats unset like a legacy row."""
    profile = AttendeeProfile(
        user_id=user_id,
        display_name=f'Player {user_id}',
        points=points,
        points_accumulated=points,
        duel_stats=json.dumps(stats) if stats is not None else None,
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def add_duel(host_id=HOST_ID, guest_id=GUEST_ID, pending_host=(), pending_guest=(), **fields):
    values = dict(
        host_score=0,
        guest_score=0,
        host_has_disconnected=False,
        guest_has_disconnected=False,
        has_finished=False,
        is_scoring_duel=True,
    )
    values.update(fields)
    duel = Duel(
        host_id=host_id,
        guest_id=guest_id,
        pending_host=json.dumps(list(pending_host)),
        pending_guest=json.dumps(list(pending_guest)),
        **values,
    )
    db.session.add(duel)
    db.session.commit()
    return duel


def profile_dict(user_id):
    return AttendeeProfile.query.filter_by(user_id=user_id).first().to_dict()
