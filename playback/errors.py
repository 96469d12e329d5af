class PlaybackError(Exception):
    """Base class for errors whose message can be shown to a user."""


class QueueError(PlaybackError):
    pass


class IndexOutOfRange(QueueError):
    def __init__(self, position, count):
        self.position = position
        self.count = count
        if count:
            message = f"Position {position} is out of range (1-{count})"
        else:
            message = f"Position {position} is out of range, the queue is empty"
        super().__init__(message)


class InvalidOperation(QueueError):
    pass


class EmptyQueueOperation(QueueError):
    def __init__(self, message="Nothing queued"):
        super().__init__(message)


class MetadataDecodeError(PlaybackError):
    pass


class SessionNotFound(PlaybackError):
    def __init__(self, guild_id):
        self.guild_id = guild_id
        super().__init__("Not in a voice channel")
