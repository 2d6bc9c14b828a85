from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if allowed_origins == ['*']:
        allowed_origins = '*'
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Match state lives in memory, one service per app
    from reaction_duel.services import build_service
    flask_app.extensions['reaction_duel'] = build_service(flask_app, socketio)

    # Import and register blueprints here
    from reaction_duel.routes import main
    flask_app.register_blueprint(main)

    from reaction_duel.api.matches import matches
    flask_app.register_blueprint(matches, url_prefix='/api/matches')

    # Register Socket.IO event handlers
    from reaction_duel.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    return flask_app
