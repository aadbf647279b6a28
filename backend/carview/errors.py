"""
Exception types raised by the relay and mapped to JSON responses in main.
"""
from __future__ import annotations


class CarViewError(Exception):
    """Base class for errors the relay turns into an HTTP response."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(CarViewError):
    status_code = 500


class InvalidImageError(CarViewError):
    status_code = 400


class UpstreamError(CarViewError):
    """The AI gateway answered with a non-success status or could not be reached."""

    status_code = 500

    def __init__(self, message: str, upstream_status: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.body = body


class StageError(CarViewError):
    """A pipeline stage failed; the whole request is aborted."""

    status_code = 500

    def __init__(self, stage: str, message: str, cause: UpstreamError | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause
