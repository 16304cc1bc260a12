"""Exception types raised by the analytics core."""


class OrderLensError(Exception):
    """Base class for analytics core errors."""


class UnknownRangeError(OrderLensError, ValueError):
    """Raised when a range token is not one of the supported named periods."""

    def __init__(self, token: object):
        self.token = token
        super().__init__(f"Unknown range token: {token!r}")


class IngestionError(OrderLensError):
    """Raised when a record collection cannot be ingested at all."""
