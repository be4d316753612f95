import re
from datetime import datetime, timedelta, timezone

import pytest

from escape_room.services.rooms import InvalidTransition, RoomFull, RoomNotFound, RoomStore
from escape_room.services.rooms.store import EVICTED, TIMED_OUT


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def room_store(clock):
    return RoomStore(max_players=3, game_time_limit_sec=600, empty_ttl_sec=60, clock=clock)


def test_ensure_room_is_idempotent(room_store):
    first = room_store.ensure_room('R1')
    room_store.add_player('R1', 's1', 'Alice')
    second = room_store.ensure_room('R1')
    assert first['status'] == 'waiting'
    assert first['players'] == []
    assert len(second['players']) == 1
    assert len(room_store.list_rooms()) == 1


def test_create_room_generates_unique_ids(room_store):
    ids = {room_store.create_room(f'room {i}')['id'] for i in range(50)}
    assert len(ids) == 50
    assert all(re.fullmatch(r"[A-Z0-9]{6}", i) for i in ids)


def test_create_room_default_and_explicit_capacity(room_store):
    assert room_store.create_room('a')['maxPlayers'] == 3
    assert room_store.create_room('b', max_players=8)['maxPlayers'] == 8


def test_add_player_keeps_join_order(room_store, clock):
    room_store.add_player('R1', 's1', 'Alice')
    clock.advance(seconds=1)
    arrival = room_store.add_player('R1', 's2', 'Bob')
    assert [p['name'] for p in arrival.room['players']] == ['Alice', 'Bob']
    assert arrival.player['id'] == 's2'
    assert arrival.player['joinedAt'] == clock.now.isoformat()
    assert arrival.previous is None


def test_duplicate_names_are_allowed(room_store):
    room_store.add_player('R1', 's1', '')
    arrival = room_store.add_player('R1', 's2', '')
    assert len(arrival.room['players']) == 2


def test_add_player_enforces_capacity(room_store):
    for i in range(3):
        room_store.add_player('R1', f's{i}', f'P{i}')
    with pytest.raises(RoomFull) as excinfo:
        room_store.add_player('R1', 's9', 'Late')
    assert excinfo.value.code == 'room_full'
    assert len(room_store.get_room('R1')['players']) == 3
    assert room_store.get_player('s9') is None


def test_rejoining_same_full_room_is_allowed(room_store):
    for i in range(3):
        room_store.add_player('R1', f's{i}', f'P{i}')
    arrival = room_store.add_player('R1', 's0', 'P0 again')
    assert arrival.previous.room_id == 'R1'
    assert [p['name'] for p in arrival.room['players']] == ['P1', 'P2', 'P0 again']


def test_join_moves_connection_between_rooms(room_store):
    room_store.add_player('R1', 's1', 'Alice')
    arrival = room_store.add_player('R2', 's1', 'Alice')
    assert arrival.previous.room_id == 'R1'
    assert arrival.previous.room['players'] == []
    assert room_store.get_player('s1')['roomId'] == 'R2'
    assert room_store.stats()['totalPlayers'] == 1


def test_remove_player(room_store):
    room_store.add_player('R1', 's1', 'Alice')
    room_store.add_player('R1', 's2', 'Bob')
    departure = room_store.remove_player('s1')
    assert departure.room_id == 'R1'
    assert departure.player['name'] == 'Alice'
    assert [p['name'] for p in departure.room['players']] == ['Bob']
    assert room_store.get_player('s1') is None


def test_remove_unknown_connection(room_store):
    assert room_store.remove_player('never-joined') is None


def test_delete_room_forgets_its_connections(room_store):
    room_store.add_player('R1', 's1', 'Alice')
    room_store.delete_room('R1')
    assert room_store.get_room('R1') is None
    assert room_store.remove_player('s1') is None
    with pytest.raises(RoomNotFound):
        room_store.delete_room('R1')


def test_strict_transitions(room_store, clock):
    room_store.ensure_room('R1')
    with pytest.raises(InvalidTransition):
        room_store.end_game('R1', True)

    started = room_store.start_game('R1')
    assert started['status'] == 'playing'
    assert started['startTime'] == clock.now.isoformat()
    with pytest.raises(InvalidTransition):
        room_store.start_game('R1')

    clock.advance(minutes=5)
    ended = room_store.end_game('R1', True)
    assert ended['status'] == 'finished'
    assert ended['endTime'] == clock.now.isoformat()
    assert ended['success'] is True
    with pytest.raises(InvalidTransition):
        room_store.start_game('R1')
    with pytest.raises(InvalidTransition):
        room_store.end_game('R1', False)


def test_lenient_transitions(clock):
    room_store = RoomStore(strict_transitions=False, clock=clock)
    room_store.ensure_room('R1')
    room_store.start_game('R1')
    clock.advance(seconds=10)
    restarted = room_store.start_game('R1')
    assert restarted['startTime'] == clock.now.isoformat()

    ended = room_store.end_game('R1', False)
    assert ended['success'] is False
    assert room_store.start_game('R1')['status'] == 'playing'


def test_lifecycle_on_missing_room(room_store):
    with pytest.raises(RoomNotFound):
        room_store.start_game('ghost')
    with pytest.raises(RoomNotFound):
        room_store.end_game('ghost', True)
    assert room_store.get_room('ghost') is None


def test_sweep_times_out_long_games(room_store, clock):
    room_store.add_player('R1', 's1', 'Alice')
    room_store.start_game('R1')
    clock.advance(seconds=599)
    assert room_store.sweep() == []

    clock.advance(seconds=1)
    actions = room_store.sweep()
    assert [(a.kind, a.room_id) for a in actions] == [(TIMED_OUT, 'R1')]
    assert actions[0].room['status'] == 'finished'
    assert actions[0].room['success'] is False
    assert room_store.get_room('R1')['status'] == 'finished'


def test_sweep_evicts_empty_rooms_after_ttl(room_store, clock):
    room_store.create_room('idle')
    room_store.add_player('R1', 's1', 'Alice')
    clock.advance(seconds=30)
    room_store.add_player('R2', 's2', 'Bob')
    room_store.remove_player('s2')

    clock.advance(seconds=30)
    actions = room_store.sweep()
    assert [a.kind for a in actions] == [EVICTED]
    assert room_store.get_room('R1') is not None
    assert room_store.get_room('R2') is not None

    clock.advance(seconds=30)
    assert [a.room_id for a in room_store.sweep()] == ['R2']
    assert [r['id'] for r in room_store.list_rooms()] == ['R1']


def test_sweep_times_out_and_evicts_abandoned_game(room_store, clock):
    room_store.add_player('R1', 's1', 'Alice')
    room_store.start_game('R1')
    room_store.remove_player('s1')
    clock.advance(seconds=600)

    actions = room_store.sweep()
    assert [(a.kind, a.room_id) for a in actions] == [(TIMED_OUT, 'R1'), (EVICTED, 'R1')]
    assert actions[0].room['success'] is False
    assert room_store.get_room('R1') is None


def test_end_game_only_counts_literal_true_as_success(room_store):
    for room_id, sent in (('A', 'false'), ('B', 1), ('C', None), ('D', True)):
        room_store.ensure_room(room_id)
        room_store.start_game(room_id)
        room_store.end_game(room_id, sent)
    assert [room_store.get_room(r)['success'] for r in 'ABCD'] == [False, False, False, True]
