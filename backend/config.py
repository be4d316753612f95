import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in ('0', 'false', 'no', 'off', '')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    APP_VERSION = '1.0.0'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    # Comma separated; '*' allows every origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGIN', '*').split(',')
    # Room capacity used when a room is created without an explicit max
    MAX_PLAYERS_PER_ROOM = int(os.environ.get('MAX_PLAYERS_PER_ROOM', '4'))
    # A game still playing after this long is ended as a failure (seconds)
    GAME_TIME_LIMIT_SEC = int(os.environ.get('GAME_TIME_LIMIT_SEC', '3600'))
    # Sweeper period and how long an empty room may linger (seconds)
    ROOM_CLEANUP_INTERVAL_SEC = int(os.environ.get('ROOM_CLEANUP_INTERVAL_SEC', '300'))
    ROOM_EMPTY_TTL_SEC = int(os.environ.get('ROOM_EMPTY_TTL_SEC', '300'))
    # Guard status changes to waiting -> playing -> finished. Off restores lenient updates.
    STRICT_ROOM_TRANSITIONS = _env_flag('STRICT_ROOM_TRANSITIONS', True)
