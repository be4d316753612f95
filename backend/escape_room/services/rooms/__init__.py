"""Room domain services: the shared store and its background sweeper.

HTTP routes and socket handlers both go through the store owned by the
running app (``get_room_store``), so there is one source of truth for rooms.
"""

from flask import current_app

from .errors import InvalidTransition, RoomError, RoomFull, RoomNotFound
from .store import RoomStore

EXTENSION_KEY = 'room_store'


def init_room_store(app) -> RoomStore:
    store = RoomStore.from_config(app.config)
    app.extensions[EXTENSION_KEY] = store
    return store


def get_room_store() -> RoomStore:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    'RoomStore', 'RoomError', 'RoomNotFound', 'RoomFull', 'InvalidTransition',
    'init_room_store', 'get_room_store',
]
