from escape_room import socketio
from .store import EVICTED, TIMED_OUT


def sweep_rooms(app, store) -> int:
    """Run one sweep pass and notify the affected rooms.

    Returns the number of actions taken.
    """
    actions = store.sweep()
    for action in actions:
        if action.kind == TIMED_OUT:
            app.logger.info(f"[sweep-timeout] room={action.room_id} started={action.room['startTime']}")
            socketio.emit('game-ended', {'room': action.room, 'success': False}, to=action.room_id)
        elif action.kind == EVICTED:
            app.logger.info(f"[sweep-evict] room={action.room_id} status={action.room['status']}")
            socketio.emit('room-closed', {'roomId': action.room_id}, to=action.room_id)
            socketio.close_room(action.room_id)
    return len(actions)


def start_room_sweeper(app, store) -> bool:
    """Start the periodic sweep loop for ``app``.

    - No-ops in TESTING mode unless ENABLE_SWEEPER_IN_TESTS is set
    - No-ops when ROOM_CLEANUP_INTERVAL_SEC is 0
    - Starts at most one loop per app
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SWEEPER_IN_TESTS'):
        return False
    interval = int(app.config.get('ROOM_CLEANUP_INTERVAL_SEC', 300))
    if interval <= 0:
        return False
    if app.extensions.get('room_sweeper_started'):
        return False
    app.extensions['room_sweeper_started'] = True

    def _worker():
        app.logger.info(f"[sweep-start] interval={interval}s")
        while True:
            socketio.sleep(interval)
            try:
                sweep_rooms(app, store)
            except Exception:
                app.logger.exception("[sweep-error] sweep pass failed")

    socketio.start_background_task(_worker)
    return True
