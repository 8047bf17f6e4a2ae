from typing import Any, Optional


class PredictorError(Exception):
    """Base class for every error the controller turns into a message."""


class ParseError(PredictorError):
    """JSON text is invalid or does not hold an object."""


class NetworkError(PredictorError):
    """The remote service could not be reached."""


class ServiceError(PredictorError):
    """The remote service answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FormatError(PredictorError):
    """Uploaded file does not have a .json name."""


class StorageError(PredictorError):
    """Durable storage could not be read or written."""
