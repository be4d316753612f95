from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from escape_room import socketio
from escape_room.services.rooms import (
    InvalidTransition,
    RoomFull,
    RoomNotFound,
    get_room_store,
)


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reject(code, message, room_id=None):
    emit('error', {'code': code, 'message': message, 'roomId': room_id})


def _announce_departure(departure) -> None:
    """Leave the broadcast group and tell the rest of the room."""
    leave_room(departure.room_id)
    if departure.room is None:
        return
    emit('player-left', {'player': departure.player, 'room': departure.room}, to=departure.room_id)
    current_app.logger.info(
        f"[leave] room={departure.room_id} sid={departure.player['id']} "
        f"name={departure.player['name']!r} players={len(departure.room['players'])}"
    )


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")
    emit('connected', {'id': _get_sid()})


def handle_disconnect(reason=None):
    departure = get_room_store().remove_player(_get_sid())
    if departure:
        _announce_departure(departure)
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")


def handle_join_room(data):
    data = data or {}
    room_id = data.get('roomId')
    if not room_id:
        _reject('invalid_request', 'roomId is required')
        return
    player_name = data.get('playerName', '')

    try:
        arrival = get_room_store().add_player(room_id, _get_sid(), player_name)
    except RoomFull as exc:
        current_app.logger.info(f"[join-reject] room={room_id} sid={_get_sid()} full")
        _reject(exc.code, exc.message, room_id)
        return

    if arrival.previous:
        _announce_departure(arrival.previous)
    join_room(room_id)
    emit('player-joined', {'player': arrival.player, 'room': arrival.room}, to=room_id)
    current_app.logger.info(
        f"[join] room={room_id} sid={_get_sid()} name={player_name!r} players={len(arrival.room['players'])}"
    )


def handle_leave_room(data=None):
    store = get_room_store()
    current_room = store.room_of(_get_sid())
    if current_room is None:
        _reject('invalid_request', 'Not in a room')
        return
    room_id = (data or {}).get('roomId')
    if room_id is not None and room_id != current_room:
        _reject('invalid_request', f'Not in room {room_id}', room_id)
        return

    departure = store.remove_player(_get_sid())
    if not departure:
        _reject('invalid_request', 'Not in a room')
        return
    _announce_departure(departure)
    emit('left', {'roomId': departure.room_id})


def handle_start_game(data):
    room_id = (data or {}).get('roomId')
    try:
        room = get_room_store().start_game(room_id)
    except RoomNotFound:
        current_app.logger.info(f"[start-skip] room={room_id} not found")
        return
    except InvalidTransition as exc:
        _reject(exc.code, exc.message, room_id)
        return
    emit('game-started', {'room': room}, to=room_id)
    current_app.logger.info(f"[start] room={room_id} players={len(room['players'])}")


def handle_end_game(data):
    data = data or {}
    room_id = data.get('roomId')
    try:
        room = get_room_store().end_game(room_id, data.get('success'))
    except RoomNotFound:
        current_app.logger.info(f"[end-skip] room={room_id} not found")
        return
    except InvalidTransition as exc:
        _reject(exc.code, exc.message, room_id)
        return
    emit('game-ended', {'room': room, 'success': room['success']}, to=room_id)
    current_app.logger.info(f"[end] room={room_id} success={room['success']}")


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join-room', handle_join_room, namespace=namespace)
    socketio.on_event('leave-room', handle_leave_room, namespace=namespace)
    socketio.on_event('start-game', handle_start_game, namespace=namespace)
    socketio.on_event('end-game', handle_end_game, namespace=namespace)
