"""Error types raised while sending and tracking a generic message transfer"""

from typing import Optional


class SygmaMessagingError(Exception):
    """Base class for all errors raised by this package"""


class ConfigurationError(SygmaMessagingError):
    """Required configuration is missing or malformed"""


class SubmissionError(SygmaMessagingError):
    """Signing, fee quoting or broadcasting the transfer failed"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class WatchReadError(SygmaMessagingError):
    """Reading the destination contract failed (not the same as "unchanged")"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class StatusQueryError(SygmaMessagingError):
    """The transfer status API could not be queried"""
