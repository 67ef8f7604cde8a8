"""
Module to parse pagination links.

Paginated collections advertise related pages through a Link response header, in the form
described by RFC 5988:

  Link: <https://host/zones?page=2>; rel="next", <https://host/zones?page=5>; rel="last"

Only the "first", "last", "prev" and "next" relations are recognized.
"""

from enum import StrEnum
from typing import NamedTuple


class Relation(StrEnum):
    """Relation of a pagination link to the current page."""

    FIRST = "first"
    LAST = "last"
    PREV = "prev"
    NEXT = "next"


class Link(NamedTuple):
    """A URL tagged with its pagination relation."""

    relation: Relation
    url: str


def _rels(params: list[str]) -> list[str]:
    for param in params:
        name, sep, value = param.strip().partition("=")
        if sep and name.strip().lower() == "rel":
            return value.strip().strip('"').split()
    return []


def parse_link_header(header: str | None) -> list[Link]:
    """
    Parse a Link header value into pagination links, in header order.

    Parameters:
    • header: the raw header value, or None if the header is absent

    Segments with fewer than two semicolon-separated parts, or without a rel parameter, are
    skipped. Unrecognized relations are ignored.
    """
    links = []
    for segment in (header or "").split(","):
        parts = segment.split(";")
        if len(parts) < 2:
            continue
        url = parts[0].strip().strip("<>")
        for rel in _rels(parts[1:]):
            try:
                links.append(Link(Relation(rel.lower()), url))
            except ValueError:  # unrecognized relation
                continue
    return links


def parse_links(header: str | None) -> dict[Relation, str]:
    """
    Parse a Link header value into a mapping of relation to URL.

    If a relation appears more than once, the last occurrence wins.
    """
    return {link.relation: link.url for link in parse_link_header(header)}
