"""Error taxonomy for the emulator core."""


class PubSubError(Exception):
    """Base class for caller-visible errors; the message is returned as the response body."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AlreadyExists(PubSubError):
    """A topic or subscription with this name/id is already registered."""


class NotFound(PubSubError):
    """Unknown topic or subscription."""


class MalformedRequest(PubSubError):
    """Request body could not be decoded into the expected shape."""


class DeliveryFailed(PubSubError):
    """A push delivery attempt failed (connection error, timeout or non-200 status)."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(message)
        self.endpoint = endpoint
