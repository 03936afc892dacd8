from __future__ import annotations

import time
from dataclasses import dataclass


class ServiceError(Exception):
    """Base class for application service level exceptions."""


class InvalidArgumentError(ServiceError):
    """Raised when a required request field is missing or empty."""


class UnknownContentTypeError(ServiceError):
    """Raised when a content type does not resolve to a known MIME type."""


class AlreadyExistsError(ServiceError):
    """Raised when an upload target already exists in the bucket."""


class BucketNotFoundError(ServiceError):
    """Raised when the requested bucket does not exist."""


class ObjectNotFoundError(ServiceError):
    """Raised when the requested file does not exist in the bucket."""


class InvalidPayloadError(ServiceError):
    """Raised when an upload payload is not valid base64."""


class StagingIOError(ServiceError):
    """Raised when the local temporary file for an upload cannot be written."""


class DeadlineExceededError(ServiceError):
    """Raised when an operation runs out of time before its next store call."""


@dataclass(frozen=True, slots=True)
class Deadline:
    """Absolute point in time (``time.monotonic`` clock) an operation must finish by."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    def check(self, step: str) -> None:
        if self.remaining() <= 0:
            raise DeadlineExceededError(f"deadline exceeded before {step}")
