import threading
from collections import namedtuple
from datetime import timedelta
from typing import Dict, Tuple

from escape_room.models import (
    FINISHED,
    PLAYING,
    WAITING,
    Player,
    Room,
    generate_room_id,
    utcnow,
)
from .errors import InvalidTransition, RoomFull, RoomNotFound


# player/room are JSON-ready snapshots taken while the store lock was held
Arrival = namedtuple('Arrival', 'room_id player room previous')
Departure = namedtuple('Departure', 'room_id player room')
SweepAction = namedtuple('SweepAction', 'kind room_id room')

TIMED_OUT = 'timed_out'
EVICTED = 'evicted'


class RoomStore:
    """In-memory room registry shared by the HTTP and Socket.IO surfaces.

    Every mutation and every snapshot happens under a single lock so callers
    never see a room halfway through a change. Methods hand back plain dicts
    rather than the live ``Room`` objects.
    """

    def __init__(self, max_players=4, strict_transitions=True,
                 game_time_limit_sec=3600, empty_ttl_sec=300, clock=utcnow):
        self.max_players = max_players
        self.strict_transitions = strict_transitions
        self.game_time_limit = timedelta(seconds=game_time_limit_sec)
        self.empty_ttl = timedelta(seconds=empty_ttl_sec)
        self._clock = clock
        self._rooms: Dict[str, Room] = {}
        self._connections: Dict[str, Tuple[str, Player]] = {}
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config):
        return cls(
            max_players=int(config.get('MAX_PLAYERS_PER_ROOM', 4)),
            strict_transitions=bool(config.get('STRICT_ROOM_TRANSITIONS', True)),
            game_time_limit_sec=int(config.get('GAME_TIME_LIMIT_SEC', 3600)),
            empty_ttl_sec=int(config.get('ROOM_EMPTY_TTL_SEC', 300)),
        )

    # ---- rooms ----

    def _new_room(self, room_id, name=None, max_players=None) -> Room:
        now = self._clock()
        room = Room(
            id=room_id,
            name=name if name is not None else room_id,
            max_players=max_players or self.max_players,
            created_at=now,
            last_activity=now,
        )
        self._rooms[room_id] = room
        return room

    def _ensure(self, room_id) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            room = self._new_room(room_id)
        return room

    def _require(self, room_id) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(f'Room {room_id} not found', room_id)
        return room

    def ensure_room(self, room_id):
        with self._lock:
            return self._ensure(room_id).to_dict()

    def create_room(self, name, max_players=None):
        with self._lock:
            room_id = generate_room_id(self._rooms)
            return self._new_room(room_id, name=name, max_players=max_players).to_dict()

    def get_room(self, room_id):
        with self._lock:
            room = self._rooms.get(room_id)
            return room.to_dict() if room else None

    def list_rooms(self):
        with self._lock:
            return [room.summary() for room in self._rooms.values()]

    def delete_room(self, room_id):
        """Remove a room and forget the connections that were in it."""
        with self._lock:
            room = self._require(room_id)
            del self._rooms[room_id]
            for player in room.players:
                self._connections.pop(player.id, None)
            return room.to_dict()

    # ---- players ----

    def add_player(self, room_id, sid, name) -> Arrival:
        """Add the connection ``sid`` to a room, creating the room if needed.

        A connection sits in one room at a time: joining again moves it, and
        the move is reported through ``Arrival.previous``.
        """
        with self._lock:
            room = self._ensure(room_id)
            current = self._connections.get(sid)
            rejoining = current is not None and current[0] == room_id
            if room.is_full and not rejoining:
                raise RoomFull(f'Room {room_id} is full ({room.max_players} players)', room_id)

            previous = self._detach(sid) if current else None
            player = Player(id=sid, name=name, joined_at=self._clock())
            room.players.append(player)
            room.last_activity = player.joined_at
            self._connections[sid] = (room_id, player)
            return Arrival(room_id, player.to_dict(), room.to_dict(), previous)

    def _detach(self, sid):
        room_id, player = self._connections.pop(sid)
        room = self._rooms.get(room_id)
        if room is None:
            return Departure(room_id, player.to_dict(), None)
        room.players = [p for p in room.players if p is not player]
        room.last_activity = self._clock()
        return Departure(room_id, player.to_dict(), room.to_dict())

    def remove_player(self, sid):
        """Drop the connection's player; ``None`` if it never joined."""
        with self._lock:
            if sid not in self._connections:
                return None
            return self._detach(sid)

    def room_of(self, sid):
        with self._lock:
            entry = self._connections.get(sid)
            return entry[0] if entry else None

    def get_player(self, player_id):
        with self._lock:
            entry = self._connections.get(player_id)
            if not entry:
                return None
            room_id, player = entry
            data = player.to_dict()
            data['roomId'] = room_id
            return data

    # ---- lifecycle ----

    def start_game(self, room_id):
        with self._lock:
            room = self._require(room_id)
            if self.strict_transitions and room.status != WAITING:
                raise InvalidTransition(
                    f'Cannot start room {room_id} while it is {room.status}', room_id)
            room.status = PLAYING
            room.start_time = self._clock()
            return room.to_dict()

    def end_game(self, room_id, success):
        with self._lock:
            room = self._require(room_id)
            if self.strict_transitions and room.status != PLAYING:
                raise InvalidTransition(
                    f'Cannot end room {room_id} while it is {room.status}', room_id)
            self._finish(room, success is True)
            return room.to_dict()

    def _finish(self, room, success):
        room.status = FINISHED
        room.end_time = self._clock()
        room.success = success

    # ---- housekeeping ----

    def stats(self):
        with self._lock:
            rooms = list(self._rooms.values())
            return {
                'totalRooms': len(rooms),
                'totalPlayers': len(self._connections),
                'activeGames': sum(1 for r in rooms if r.status == PLAYING),
                'completedGames': sum(1 for r in rooms if r.status == FINISHED),
            }

    def sweep(self, now=None):
        """Time out overlong games and evict rooms left empty past the TTL."""
        now = now or self._clock()
        actions = []
        with self._lock:
            for room in list(self._rooms.values()):
                if room.status == PLAYING and room.start_time and now - room.start_time >= self.game_time_limit:
                    self._finish(room, False)
                    actions.append(SweepAction(TIMED_OUT, room.id, room.to_dict()))
                if not room.players and now - room.last_activity >= self.empty_ttl:
                    del self._rooms[room.id]
                    actions.append(SweepAction(EVICTED, room.id, room.to_dict()))
        return actions
