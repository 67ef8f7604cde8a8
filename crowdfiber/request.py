"""Module to send requests through a transport and handle their responses."""

import http
import logging

from collections.abc import Callable
from crowdfiber.codec import DecodeError, _wrap, loads
from crowdfiber.error import (
    DecodeFailureError,
    EmptyResponseError,
    NotFoundError,
    ServerMessageError,
    TransportError,
)
from crowdfiber.http import Request, Response, Transport
from typing import Any, TypeVar


_logger = logging.getLogger(__name__)


T = TypeVar("T")


def _text(body: bytes | None) -> str:
    return body.decode("utf-8", errors="replace") if body is not None else ""


async def send(transport: Transport, request: Request) -> Response:
    """
    Send a request through a transport and return the response.

    Any exception escaping the transport that is not already a TransportError is raised as
    a TransportError, with the original exception as its cause.
    """
    _logger.debug("request: %s %s", request.method, request.url)
    try:
        response = await transport.send(request)
    except TransportError:
        raise
    except Exception as e:
        raise TransportError(str(e) or type(e).__name__) from e
    _logger.debug("response: %s %s: %d", request.method, request.url, response.status)
    return response


def check_status(status: int, body: bytes | None) -> None:
    """
    Raise an error if the status code does not indicate success.

    Any status code outside of 200–299 is an error. A 404 status raises NotFoundError; any
    other raises ServerMessageError with the response body text as its message.
    """
    if 200 <= status <= 299:
        return
    if status == http.HTTPStatus.NOT_FOUND.value:
        raise NotFoundError
    raise ServerMessageError(_text(body), status)


def decode_body(body: bytes | None, decode: Callable[[Any], T]) -> T:
    """
    Decode a successful response body as JSON, then through a decode function.

    Raises EmptyResponseError if there is no body or the body is empty, and
    DecodeFailureError if it cannot be decoded; the latter retains the raw body text. Any
    exception raised by the decode function is a decoding failure.
    """
    if not body:
        raise EmptyResponseError
    try:
        with _wrap(DecodeError):
            return decode(loads(body))
    except DecodeError as de:
        raise DecodeFailureError(str(de) or "invalid value", _text(body)) from de


async def handle(response: Response, decode: Callable[[Any], T] | None = None) -> T | None:
    """
    Handle a response: check its status, then decode its body.

    Parameters:
    • response: response to handle
    • decode: function to decode the JSON value of the body, or None to ignore the body
    """
    body = await response.read()
    check_status(response.status, body)
    if decode is None:
        return None
    return decode_body(body, decode)
