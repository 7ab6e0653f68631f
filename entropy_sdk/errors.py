"""Error taxonomy shared by the grid model, the client handles and the driver."""

from __future__ import annotations

from typing import Optional


class EntropyError(Exception):
    """Base class for every failure raised by entropy_sdk."""


class PreconditionViolation(EntropyError, ValueError):
    """A client-side pre-flight check rejected the request.

    Raised before anything is sent to the transport: illegal walk direction,
    field index out of bounds, insufficient energy.
    """


class TransportFailure(EntropyError):
    """The capability boundary failed.

    Covers network errors, non-success statuses and responses that do not
    deserialize into the expected model.

    Attributes:
        status_code: HTTP status of the failed response, if one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvariantBreach(EntropyError):
    """An upstream snapshot violates a data-model invariant.

    Examples: an empty field passed to extrema/entropy, a temperature outside
    the int8 range, an arrange call answered with the caller's own guest id.
    """
