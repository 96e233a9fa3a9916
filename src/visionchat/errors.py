"""Exceptions raised by remote calls."""

from __future__ import annotations


class RemoteAPIError(RuntimeError):
    """A remote endpoint failed or answered with something unusable."""

    def __init__(self, message: str, *, status: int | None = None, details: object = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details


class GenerationError(RemoteAPIError):
    """A chat completion could not be obtained."""


class VisionError(RemoteAPIError):
    """An image description could not be obtained."""
