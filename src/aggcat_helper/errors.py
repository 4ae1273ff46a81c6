"""Errors raised by the aggregation client, and the required-argument check."""

from __future__ import annotations


class AggcatError(Exception):
    """Raised on any error specific to the aggregation client."""


class InvalidArgumentError(AggcatError, ValueError):
    """A required argument was missing or empty. Raised before any request."""

    def __init__(self, name: str) -> None:
        """Initialize new instance.

        Args:
            name: name of the offending argument.

        """
        super().__init__(f"{name} is required")
        self.name = name


class MalformedInstitutionMetadataError(AggcatError):
    """Institution metadata holds fewer than two credential fields."""


class UnexpectedResponseShapeError(AggcatError):
    """Response body could not be parsed into the expected structure."""


class TransportError(AggcatError):
    """Non-success HTTP status or connection failure."""

    def __init__(self, msg: str, status_code: int | None = None, body: str = "") -> None:
        """Initialize new instance.

        Args:
            msg: error description.
            status_code: HTTP status, `None` if no response was received.
            body: raw response body, if any.

        """
        super().__init__(msg)
        self.status_code = status_code
        self.body = body


class InstitutionNotFoundError(TransportError):
    """Institution lookup returned 404."""


def validate_required(**args: object) -> None:
    """Reject missing or empty arguments, in the order they are passed.

    Raises:
        InvalidArgumentError: naming the first argument that is `None` or empty.

    """
    for name, value in args.items():
        if value is None or str(value) == "":
            raise InvalidArgumentError(name)
