"""Note resources."""

from __future__ import annotations

import crowdfiber.client

from crowdfiber.pagination import ResourceSequence, decoder
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class NoteRecord:
    """Note, as represented by the API."""

    id: int
    body: str
    notable_type: str | None = None
    notable_id: int | None = None
    created_at: datetime | None = None

    def bind(self, client: crowdfiber.client.Client) -> Note:
        """Return the note, bound to a client."""
        return Note(
            id=self.id,
            body=self.body,
            notable_type=self.notable_type,
            notable_id=self.notable_id,
            created_at=self.created_at,
            client=client,
        )


@dataclass
class Note:
    """
    A note attached to another resource.

    Attributes:
    • id: note identifier
    • body: text of the note
    • notable_type: type of resource the note is attached to  (e.g. "Address")
    • notable_id: identifier of the resource the note is attached to
    • created_at: when the note was created
    • client: client the note was retrieved through
    """

    id: int
    body: str
    notable_type: str | None = None
    notable_id: int | None = None
    created_at: datetime | None = None
    client: crowdfiber.client.Client | None = field(default=None, repr=False, compare=False)


class NoteSequence(ResourceSequence[NoteRecord, Note]):
    """Sequence of notes bound to a client."""

    def __init__(self, client: crowdfiber.client.Client, **params: str):
        super().__init__(
            client.paginate(("notes",), decoder(NoteRecord), **params),
            lambda record: record.bind(client),
        )


class Notes:
    """
    Note resources.

    Parameter:
    • client: client to access notes through
    """

    def __init__(self, client: crowdfiber.client.Client):
        self.client = client

    async def get(self, id: int) -> Note:
        """Return a note by identifier; raises NotFoundError if it does not exist."""
        record = await self.client.request("GET", ("notes", id), decode=decoder(NoteRecord))
        return record.bind(self.client)

    def find(
        self, *, notable_type: str | None = None, notable_id: int | None = None
    ) -> NoteSequence:
        """
        Return a sequence of notes.

        Parameters:
        • notable_type: only notes attached to resources of the specified type
        • notable_id: only notes attached to the resource with the specified identifier
        """
        params = {}
        if notable_type is not None:
            params["notable_type"] = notable_type
        if notable_id is not None:
            params["notable_id"] = str(notable_id)
        return NoteSequence(self.client, **params)
