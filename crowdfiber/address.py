"""Address resources."""

from __future__ import annotations

import crowdfiber.client
import crowdfiber.zone

from crowdfiber.codec import Key
from crowdfiber.pagination import ResourceSequence, decoder
from dataclasses import dataclass, field
from typing import Annotated


def _number(value: str | int | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _filter(value: bool | None) -> str | None:
    if value is None:
        return None
    return "2" if value else "1"


@dataclass
class AddressDetails:
    """
    Components of a postal address.

    Attributes:
    • street_name: name of the street  (e.g. the "Main" in "123 Main St")
    • city: city name  (e.g. "Albany")
    • state: state name  (e.g. "New York")
    • zip_code: ZIP code and optional +4 extension  (e.g. (12345, 6789))
    • name: name of the address
    • number: street number  (e.g. the 123 in "123 Main St")
    • pre_dir: street pre-direction
    • type: street type  (e.g. "St", "Ave")
    • suf_dir: street suffix direction
    """

    street_name: str
    city: str
    state: str
    zip_code: tuple[int, int | None]
    name: str | None = None
    number: int | None = None
    pre_dir: str | None = None
    type: str | None = None
    suf_dir: str | None = None

    @property
    def full_address(self) -> str:
        """The formatted address (e.g. "123 Main St, Albany, New York 12345-6789")."""
        street = " ".join(
            str(s) for s in (self.number, self.street_name, self.type) if s is not None
        )
        zip_code, plus_four = self.zip_code
        result = f"{street}, {self.city}, {self.state} {zip_code}"
        if plus_four is not None:
            result += f"-{plus_four}"
        return result


@dataclass
class AddressRecord:
    """Address, as represented by the API."""

    id: int
    full_address: Annotated[str, Key("addr_street_address")]
    street_name: Annotated[str, Key("addr_street_name")]
    city: Annotated[str, Key("addr_city")]
    state: Annotated[str, Key("addr_state")]
    zip_code: Annotated[str | int, Key("addr_zip")]
    zone_id: int | None = None
    name: Annotated[str | None, Key("addr_name")] = None
    number: Annotated[str | int | None, Key("addr_num")] = None
    pre_dir: Annotated[str | None, Key("addr_pre_dir")] = None
    type: Annotated[str | None, Key("addr_type")] = None
    suf_dir: Annotated[str | None, Key("addr_suf_dir")] = None
    zip_code_last: Annotated[str | int | None, Key("addr_zip_plus_4")] = None
    timezone: Annotated[str | None, Key("addr_timezone")] = None
    latitude: float | None = None
    longitude: float | None = None

    def __post_init__(self):
        if _number(self.zip_code) is None:
            raise ValueError(f'expected ZIP code to be an integer, found "{self.zip_code}"')

    @property
    def details(self) -> AddressDetails:
        """Components of the address."""
        return AddressDetails(
            street_name=self.street_name,
            city=self.city,
            state=self.state,
            zip_code=(_number(self.zip_code), _number(self.zip_code_last)),
            name=self.name,
            number=_number(self.number),
            pre_dir=self.pre_dir,
            type=self.type,
            suf_dir=self.suf_dir,
        )

    def bind(self, client: crowdfiber.client.Client) -> Address:
        """Return the address, bound to a client."""
        return Address(
            id=self.id,
            zone_id=self.zone_id,
            name=self.name,
            full_address=self.full_address,
            details=self.details,
            timezone=self.timezone,
            latitude=self.latitude,
            longitude=self.longitude,
            client=client,
        )


@dataclass
class Address:
    """
    An address.

    Attributes:
    • id: address identifier
    • zone_id: identifier of the zone the address is in
    • name: name of the address
    • full_address: full street address, as provided by the API
    • details: components of the address
    • timezone: time zone of the address
    • latitude: latitude of the address
    • longitude: longitude of the address
    • client: client the address was retrieved through
    """

    id: int
    full_address: str
    details: AddressDetails
    zone_id: int | None = None
    name: str | None = None
    timezone: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    client: crowdfiber.client.Client | None = field(default=None, repr=False, compare=False)

    def __str__(self):
        return "\n".join(
            (
                f"ID: {self.id}",
                f"Name: {self.name or '(No Name)'}",
                f"Full Address: {self.full_address}",
                f"Full Address (Details): {self.details.full_address}",
                f"Coordinates (x, y): {self.longitude} {self.latitude}",
            )
        )

    async def zone(self) -> crowdfiber.zone.Zone | None:
        """Return the zone the address is in, or None if it is not in a zone."""
        client = crowdfiber.client.bound(self.client, "address")
        if self.zone_id is None:
            return None
        return await client.zones.get(self.zone_id)


class AddressSequence(ResourceSequence[AddressRecord, Address]):
    """Sequence of addresses bound to a client."""

    def __init__(self, client: crowdfiber.client.Client, **params: str):
        super().__init__(
            client.paginate(("addresses",), decoder(AddressRecord), **params),
            lambda record: record.bind(client),
        )


class Addresses:
    """
    Address resources.

    Parameter:
    • client: client to access addresses through
    """

    def __init__(self, client: crowdfiber.client.Client):
        self.client = client

    async def get(self, id: int) -> Address:
        """Return an address by identifier; raises NotFoundError if it does not exist."""
        record = await self.client.request(
            "GET", ("addresses", id), decode=decoder(AddressRecord)
        )
        return record.bind(self.client)

    def find(
        self,
        *,
        zone_id: int | None = None,
        has_active_service: bool | None = None,
        has_orders: bool | None = None,
        is_vacant: bool | None = None,
    ) -> AddressSequence:
        """
        Return a sequence of addresses that match the specified filters.

        Parameters:
        • zone_id: only addresses in the zone with the specified identifier
        • has_active_service: only addresses with or without active service
        • has_orders: only addresses with or without orders
        • is_vacant: only addresses that are or are not vacant
        """
        params = {
            "with_zones": str(zone_id) if zone_id is not None else None,
            "with_service_active": _filter(has_active_service),
            "with_orders": _filter(has_orders),
            "with_vacant": _filter(is_vacant),
        }
        params = {k: v for k, v in params.items() if v is not None}
        return AddressSequence(self.client, **params)
