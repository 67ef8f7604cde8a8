"""Client error module."""

from collections.abc import Iterator


class Error(Exception):
    """
    Base class for client errors.

    Every failure raised by the client is an instance of exactly one of the subclasses in
    this module. Errors are never swallowed by the client; each propagates to the immediate
    caller of the operation that triggered it.
    """

    def __init__(self, detail: str | None = None):
        super().__init__(*((detail,) if detail is not None else ()))
        self.detail = detail

    def __str__(self):
        return self.describe()

    def describe(self) -> str:
        """Return a human-readable description of the error."""
        return self.__doc__.strip().rstrip(".")


class ServerMessageError(Error):
    """
    Error message returned by the server with a non-2xx status.

    Attributes:
    • message: response body text, verbatim
    • status: HTTP status code of the response
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def describe(self) -> str:
        return f"error message from server: {self.message}"


class EmptyResponseError(Error):
    """Server did not return a response body."""


class NotFoundError(Error):
    """The requested resource was not found."""


class EncodeFailureError(Error):
    """Failed to encode a value to send to the server."""

    def describe(self) -> str:
        return f"failed to encode value: {self.detail}"


class DecodeFailureError(Error):
    """
    Failed to decode a value received from the server.

    Attributes:
    • detail: description of the decoding failure
    • raw_body: the undecoded response body text
    """

    def __init__(self, detail: str | None, raw_body: str):
        super().__init__(detail)
        self.raw_body = raw_body

    def describe(self) -> str:
        return f"failed to decode value: {self.detail} (from raw: {self.raw_body})"


class TransportError(Error):
    """HTTP transport failed to perform the request."""

    def describe(self) -> str:
        return f"HTTP transport error: {self.detail}"


class OtherError(Error):
    """Unknown error occurred."""

    def describe(self) -> str:
        return f"unknown error occurred: {self.detail}"


def errors() -> Iterator[type[Error]]:
    """Return an iterator over all error classes in the taxonomy."""
    return iter(
        (
            ServerMessageError,
            EmptyResponseError,
            NotFoundError,
            EncodeFailureError,
            DecodeFailureError,
            TransportError,
            OtherError,
        )
    )
