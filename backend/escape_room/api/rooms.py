from flask import Blueprint, jsonify, request, current_app
from escape_room import socketio
from escape_room.services.rooms import RoomNotFound, get_room_store


rooms = Blueprint('rooms', __name__)


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def _parse_max_players(value):
    """Return a positive int, or None when the value is unusable."""
    if isinstance(value, bool):
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


@rooms.route('/rooms', methods=['GET'])
def list_rooms():
    return jsonify({'success': True, 'rooms': get_room_store().list_rooms()})


@rooms.route('/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    room = get_room_store().get_room(room_id)
    if not room:
        return _error('Room not found', 404)
    return jsonify({'success': True, 'room': room})


@rooms.route('/rooms', methods=['POST'])
def create_room():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    if not name:
        return _error('Room name is required', 400)

    max_players = None
    if data.get('maxPlayers') is not None:
        max_players = _parse_max_players(data.get('maxPlayers'))
        if max_players is None:
            return _error('maxPlayers must be a positive integer', 400)

    room = get_room_store().create_room(name, max_players=max_players)
    current_app.logger.info(f"[room-create] room={room['id']} name={name!r} max={room['maxPlayers']}")
    return jsonify({
        'success': True,
        'room': {
            'id': room['id'],
            'name': room['name'],
            'maxPlayers': room['maxPlayers'],
            'status': room['status'],
        },
    }), 201


@rooms.route('/rooms/<string:room_id>', methods=['DELETE'])
def delete_room(room_id):
    try:
        get_room_store().delete_room(room_id)
    except RoomNotFound:
        return _error('Room not found', 404)
    current_app.logger.info(f"[room-delete] room={room_id}")
    # Let anyone still connected know the room is gone
    socketio.emit('room-closed', {'roomId': room_id}, to=room_id)
    socketio.close_room(room_id)
    return jsonify({'success': True, 'message': 'Room deleted'})


@rooms.route('/players/<string:player_id>', methods=['GET'])
def get_player(player_id):
    player = get_room_store().get_player(player_id)
    if not player:
        return _error('Player not found', 404)
    return jsonify({'success': True, 'player': player})


@rooms.route('/stats', methods=['GET'])
def get_stats():
    return jsonify({'success': True, 'stats': get_room_store().stats()})
