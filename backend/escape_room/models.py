from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
import random
import string

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'

ROOM_ID_LENGTH = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def generate_room_id(taken, length=ROOM_ID_LENGTH):
    """Generate a short room code not present in ``taken``."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


@dataclass(eq=False)
class Player:
    id: str
    name: str
    joined_at: datetime = field(default_factory=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'joinedAt': _iso(self.joined_at),
        }


@dataclass
class Room:
    id: str
    name: str
    max_players: int
    players: List[Player] = field(default_factory=list)
    status: str = WAITING  # waiting, playing, finished
    created_at: datetime = field(default_factory=utcnow)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    success: Optional[bool] = None
    last_activity: datetime = field(default_factory=utcnow)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.max_players

    def summary(self):
        return {
            'id': self.id,
            'name': self.name,
            'playerCount': len(self.players),
            'maxPlayers': self.max_players,
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'maxPlayers': self.max_players,
            'players': [p.to_dict() for p in self.players],
            'status': self.status,
            'createdAt': _iso(self.created_at),
            'startTime': _iso(self.start_time),
            'endTime': _iso(self.end_time),
            'success': self.success,
        }
