"""Zone resources."""

from __future__ import annotations

import crowdfiber.client
import logging

from crowdfiber.codec import EncodeError, JSONCodec, Key, dumps
from crowdfiber.error import EncodeFailureError
from crowdfiber.pagination import ResourceSequence, decoder
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Annotated, Any


_logger = logging.getLogger(__name__)


Geometry = list[list[list[float]]]  # polygon: rings of [longitude, latitude] positions


class ZoneType(StrEnum):
    """Type of zone."""

    IN_SERVICE = "in_service"
    NONPUBLIC = "nonpublic"
    EXTENDED = "extended"
    REFERENCE = "reference"
    REMOTE = "remote"

    @classmethod
    def from_label(cls, label: str) -> "ZoneType":
        """
        Return the zone type for a user-facing label, such as "In-Service" or "Private".
        Unrecognized labels map to REMOTE.
        """
        return _labels.get(label.lower(), cls.REMOTE)


_labels = {
    "in-service": ZoneType.IN_SERVICE,
    "private": ZoneType.NONPUBLIC,
    "pre-registration": ZoneType.EXTENDED,
    "reference": ZoneType.REFERENCE,
    "remote": ZoneType.REMOTE,
}


@dataclass
class ZoneRecord:
    """Zone, as represented by the API."""

    id: int
    name: str
    type: Annotated[ZoneType, Key("zone_type")]
    color: Annotated[str | None, Key("zone_color")] = None
    dynamic_fields: dict[str, Any] | None = None

    def bind(self, client: crowdfiber.client.Client) -> Zone:
        """Return the zone, bound to a client."""
        return Zone(
            id=self.id,
            name=self.name,
            type=self.type,
            color=self.color,
            dynamic_fields=self.dynamic_fields,
            client=client,
        )


@dataclass
class ZoneBody:
    """Request body to create or update a zone."""

    name: str
    type: Annotated[ZoneType, Key("zone_type")]
    color: Annotated[str | None, Key("zone_color")] = None
    geometry: Annotated[str | None, Key("geom")] = None
    dynamic_fields: dict[str, Any] | None = None


def polygon(geometry: Geometry | None) -> str | None:
    """Return a GeoJSON polygon string with the specified coordinates."""
    if geometry is None:
        return None
    try:
        coordinates = JSONCodec.get(Geometry).encode(geometry)
    except EncodeError as ee:
        raise EncodeFailureError(f"invalid geometry: {ee}") from ee
    return dumps({"type": "Polygon", "coordinates": coordinates}).decode()


@dataclass
class Zone:
    """
    A zone.

    Attributes:
    • id: zone identifier
    • name: name of the zone
    • type: type of zone
    • color: color to display the zone with
    • dynamic_fields: custom fields defined for the zone
    • client: client the zone was retrieved through
    """

    id: int
    name: str
    type: ZoneType
    color: str | None = None
    dynamic_fields: dict[str, Any] | None = None
    client: crowdfiber.client.Client | None = field(default=None, repr=False, compare=False)

    def __str__(self):
        return "\n".join(
            (
                f"ID: {self.id}",
                f"Name: {self.name}",
                f"Type: {self.type.value}",
                f"Color: {self.color or '(No color)'}",
            )
        )

    async def geojson(self) -> Any:
        """Return the geometry of the zone, as a GeoJSON value."""
        client = crowdfiber.client.bound(self.client, "zone")
        return await client.request("GET", ("zones", self.id, "geojson"), decode=decoder(Any))

    async def update(self, geometry: Geometry | None = None) -> None:
        """
        Update the zone with its current attributes.

        Parameters:
        • geometry: new polygon coordinates of the zone  [unchanged]
        """
        client = crowdfiber.client.bound(self.client, "zone")
        body = ZoneBody(
            name=self.name,
            type=self.type,
            color=self.color,
            geometry=polygon(geometry),
            dynamic_fields=self.dynamic_fields,
        )
        _logger.debug("updating zone: %s", self.id)
        await client.request("PUT", ("zones", self.id), body_type=ZoneBody, body=body)


class ZoneSequence(ResourceSequence[ZoneRecord, Zone]):
    """Sequence of zones bound to a client."""

    def __init__(self, client: crowdfiber.client.Client):
        super().__init__(
            client.paginate(("zones",), decoder(ZoneRecord)),
            lambda record: record.bind(client),
        )


class Zones:
    """
    Zone resources.

    Parameter:
    • client: client to access zones through
    """

    def __init__(self, client: crowdfiber.client.Client):
        self.client = client

    def all(self) -> ZoneSequence:
        """Return a sequence of all zones."""
        return ZoneSequence(self.client)

    async def get(self, id: int) -> Zone:
        """Return a zone by identifier; raises NotFoundError if it does not exist."""
        record = await self.client.request("GET", ("zones", id), decode=decoder(ZoneRecord))
        return record.bind(self.client)

    async def create(
        self,
        name: str,
        type: ZoneType,
        *,
        color: str | None = None,
        geometry: Geometry | None = None,
        dynamic_fields: dict[str, Any] | None = None,
    ) -> Zone:
        """
        Create a zone and return it.

        Parameters:
        • name: name of the zone
        • type: type of zone
        • color: color to display the zone with
        • geometry: polygon coordinates of the zone
        • dynamic_fields: custom fields of the zone
        """
        body = ZoneBody(
            name=name,
            type=type,
            color=color,
            geometry=polygon(geometry),
            dynamic_fields=dynamic_fields,
        )
        record = await self.client.request(
            "POST", ("zones",), decode=decoder(ZoneRecord), body_type=ZoneBody, body=body
        )
        _logger.debug("created zone: %s", record.id)
        return record.bind(self.client)
