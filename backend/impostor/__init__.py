from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from impostor.config import Config

socketio = SocketIO(async_mode=None)


class GameContext:
    """Everything the handlers share for one app: the room store and its outlets."""

    def __init__(self, registry, broadcaster, verifier=None, require_identity=False):
        self.registry = registry
        self.broadcaster = broadcaster
        self.verifier = verifier
        self.require_identity = require_identity


def create_app(config_class=Config, verifier=None, registry=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if origins == ['*']:
        origins = '*'
    CORS(flask_app, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from impostor.broadcast import RoomBroadcaster
    from impostor.identity import verifier_from_config
    from impostor.registry import RoomRegistry, RoomSettings

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    if registry is None:
        registry = RoomRegistry(RoomSettings.from_config(flask_app.config))
    if verifier is None:
        verifier = verifier_from_config(flask_app.config)
    flask_app.extensions['impostor'] = GameContext(
        registry,
        RoomBroadcaster(socketio, namespace),
        verifier=verifier,
        require_identity=bool(flask_app.config.get('REQUIRE_IDENTITY', False)),
    )

    from impostor.main import main
    flask_app.register_blueprint(main)

    # Handlers bind to the socketio instance initialized above
    from impostor.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace)

    from impostor.services.rooms.reaper import start_room_reaper
    start_room_reaper(flask_app, socketio)

    flask_app.logger.info(
        f"[app-init] namespace={namespace} min_players={registry.settings.min_players} "
        f"identity={'on' if verifier else 'off'}"
    )
    return flask_app
