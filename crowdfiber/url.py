"""Module to manipulate URL paths and query parameters."""

from collections.abc import Mapping
from crowdfiber.http import Query
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit


def query(url: str) -> Query:
    """Return the query string parameters of a URL."""
    return Query(parse_qsl(urlsplit(url).query, keep_blank_values=True))


def with_query(url: str, params: Mapping[str, str | int] | None = None, /, **kwargs) -> str:
    """
    Return URL with query string parameters set. Each parameter replaces all existing values
    with the same name; existing parameters that are not set keep their position and values.
    """
    updates = {k: str(v) for k, v in ({**(params or {}), **kwargs}).items()}
    parts = urlsplit(url)
    q = query(url)
    for name, value in updates.items():
        if name in q:
            q.popall(name)
        q.add(name, value)
    return urlunsplit(parts._replace(query=urlencode(list(q.items()))))


def join(url: str, *segments: str | int) -> str:
    """
    Return URL with path segments appended. Each segment is percent-encoded as a single
    path segment; the query string of the URL is preserved.
    """
    parts = urlsplit(url)
    path = parts.path.rstrip("/")
    for segment in segments:
        path += "/" + quote(str(segment), safe="")
    return urlunsplit(parts._replace(path=path))


def get_param(url: str, name: str) -> str | None:
    """Return the first value of a query string parameter, or None if not present."""
    return query(url).get(name)
