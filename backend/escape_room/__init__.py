import time

from flask import Flask, request
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.extensions['started_at'] = time.monotonic()
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', '*')
    if allowed_origins == ['*']:
        allowed_origins = '*'
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One room store per app; HTTP routes and socket handlers share it
    from escape_room.services.rooms import init_room_store
    store = init_room_store(flask_app)

    from escape_room.main import main
    flask_app.register_blueprint(main)

    from escape_room.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/game')

    from escape_room.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @flask_app.after_request
    def log_request(response):
        flask_app.logger.info(f"[http] {request.method} {request.path} {response.status_code}")
        return response

    from escape_room.services.rooms.sweeper import start_room_sweeper
    start_room_sweeper(flask_app, store)

    return flask_app
