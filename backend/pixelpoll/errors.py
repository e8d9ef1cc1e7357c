class RoomError(ValueError):
    """Base class for rejected room actions.

    ``reason`` is a short machine-readable code sent back to the caller,
    the message is the human readable detail.
    """

    reason = "error"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class InvalidRequest(RoomError):
    reason = "invalid"


class NotCreator(RoomError):
    reason = "not-creator"


class StateConflict(RoomError):
    reason = "conflict"


class RoomNotFound(RoomError):
    reason = "no-room"
