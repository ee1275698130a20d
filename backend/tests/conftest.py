import os
import random
import sys
import pytest

# Ensure the backend root (containing the `impostor` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from impostor import create_app, socketio
from impostor.errors import ExternalVerificationError
from impostor.identity import VerifiedIdentity
from impostor.registry import RoomRegistry, RoomSettings
from impostor.services.rooms import lifecycle, membership

NAMESPACE = '/ws'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MIN_PLAYERS = 3
    ROOM_TTL_SEC = 60
    SOCKETIO_NAMESPACE = NAMESPACE
    CORS_ORIGINS = ['*']
    GOOGLE_CLIENT_ID = None
    REQUIRE_IDENTITY = False


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeVerifier:
    """Accepts credentials of the form 'good:<email>:<name>'."""

    def __init__(self):
        self.calls = []

    def verify(self, credential):
        self.calls.append(credential)
        parts = credential.split(':')
        if len(parts) != 3 or parts[0] != 'good':
            raise ExternalVerificationError('Credential rejected by identity provider')
        return VerifiedIdentity(parts[1], parts[2])


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    return RoomRegistry(RoomSettings(min_players=3, room_ttl_sec=60), clock=clock, rng=random.Random(7))


@pytest.fixture()
def verifier():
    return None


@pytest.fixture()
def flask_app(registry, verifier):
    application = create_app(TestConfig, registry=registry, verifier=verifier)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_client(flask_app):
    clients = []

    def _make():
        c = socketio.test_client(flask_app, namespace=NAMESPACE)
        c.get_received(NAMESPACE)  # flush 'connected'
        clients.append(c)
        return c

    yield _make
    for c in clients:
        try:
            if c.is_connected(NAMESPACE):
                c.disconnect(namespace=NAMESPACE)
        except Exception:
            pass


def emit(sio_client, event, data):
    """Emit an intent and return its acknowledgement."""
    return sio_client.emit(event, data, namespace=NAMESPACE, callback=True)


def drain(sio_client):
    """Received notifications grouped by event name, oldest first."""
    out = {}
    for pkt in sio_client.get_received(NAMESPACE):
        out.setdefault(pkt['name'], []).append(pkt['args'][0] if pkt['args'] else None)
    return out


HOST = 'host-sid'


def make_room(registry, n=4, word='banana'):
    """A lobby with ``n`` players joined as sids p0..pN-1."""
    room = registry.create(HOST, 'Hana', word)
    for i in range(n):
        membership.join(registry, room, f'p{i}', f'Player{i}', membership.Identity(f'p{i}@school.test'))
    return room


def started_room(registry, n=4):
    room = make_room(registry, n)
    lifecycle.start_round(room, HOST, 3, random.Random(0))
    return room
