"""ndnping exception hierarchy."""


class PingError(Exception):
    """Base class for ndnping errors."""


class InvalidNameError(PingError, ValueError):
    """Raised when a name URI cannot be parsed."""


class FaceError(PingError):
    """Raised when the face cannot connect, send or register a prefix."""


class DuplicateKeyError(PingError, KeyError):
    """Raised when a probe name is already pending."""


class NotFoundError(PingError, KeyError):
    """Raised when a probe name has no pending entry."""
