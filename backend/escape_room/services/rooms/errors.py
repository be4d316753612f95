class RoomError(Exception):
    """Base error for rejected room operations.

    ``code`` is a stable machine-readable identifier sent to clients next to
    the human-readable message.
    """

    code = 'room_error'

    def __init__(self, message, room_id=None):
        super().__init__(message)
        self.message = message
        self.room_id = room_id

    def to_dict(self):
        return {'code': self.code, 'message': self.message, 'roomId': self.room_id}


class RoomNotFound(RoomError):
    code = 'room_not_found'


class RoomFull(RoomError):
    code = 'room_full'


class InvalidTransition(RoomError):
    code = 'invalid_transition'
