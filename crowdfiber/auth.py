"""Module for authentication of requests to the API."""

import base64

from crowdfiber.http import Headers


class Authentication:
    """
    Base class for authentication.

    An authentication object is read-only and carries no request state; it can be shared by
    any number of clients and sequences.
    """

    __slots__ = ()

    @property
    def headers(self) -> Headers:
        """Headers that authenticate a request."""
        raise NotImplementedError

    def __eq__(self, other):
        return type(self) is type(other) and all(
            getattr(self, s) == getattr(other, s) for s in self.__slots__
        )

    def __hash__(self):
        return hash((type(self), *(getattr(self, s) for s in self.__slots__)))


class NoAuth(Authentication):
    """No authentication; requests carry no authorization header."""

    __slots__ = ()

    @property
    def headers(self) -> Headers:
        return Headers()

    def __repr__(self):
        return "NoAuth()"


class TokenAuth(Authentication):
    """
    API token authentication.

    Parameters:
    • token: API token issued by the server

    Produces the header: `Authorization: Token <token>`.
    """

    __slots__ = ("token",)

    def __init__(self, token: str):
        self.token = token

    @property
    def headers(self) -> Headers:
        return Headers({"Authorization": f"Token {self.token}"})

    def __repr__(self):
        return "TokenAuth(token=***)"


class CredentialsAuth(Authentication):
    """
    Username and password authentication.

    Parameters:
    • username: user name
    • password: user password

    Credentials are encoded as in HTTP basic authentication, but the server expects them
    under the "Bearer" scheme name: `Authorization: Bearer <base64(username:password)>`.
    """

    __slots__ = ("username", "password")

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    @property
    def headers(self) -> Headers:
        credentials = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
        return Headers({"Authorization": f"Bearer {credentials}"})

    def __repr__(self):
        return f"CredentialsAuth(username={self.username!r}, password=***)"
