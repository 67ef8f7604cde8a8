"""Order resources."""

from __future__ import annotations

import crowdfiber.address
import crowdfiber.client

from crowdfiber.pagination import ResourceSequence, decoder
from dataclasses import dataclass, field


@dataclass
class OrderRecord:
    """Order, as represented by the API."""

    id: int
    zone_id: int | None = None
    addresses: list[crowdfiber.address.AddressRecord] = field(default_factory=list)

    def bind(self, client: crowdfiber.client.Client) -> Order:
        """Return the order, bound to a client."""
        return Order(
            id=self.id,
            zone_id=self.zone_id,
            addresses=[address.bind(client) for address in self.addresses],
            client=client,
        )


@dataclass
class Order:
    """
    An order.

    Attributes:
    • id: order identifier
    • zone_id: identifier of the zone the order was placed in
    • addresses: addresses the order applies to
    • client: client the order was retrieved through
    """

    id: int
    zone_id: int | None = None
    addresses: list[crowdfiber.address.Address] = field(default_factory=list)
    client: crowdfiber.client.Client | None = field(default=None, repr=False, compare=False)


class OrderSequence(ResourceSequence[OrderRecord, Order]):
    """Sequence of orders bound to a client."""

    def __init__(self, client: crowdfiber.client.Client, **params: str):
        super().__init__(
            client.paginate(("orders",), decoder(OrderRecord), **params),
            lambda record: record.bind(client),
        )


class Orders:
    """
    Order resources.

    Parameter:
    • client: client to access orders through
    """

    def __init__(self, client: crowdfiber.client.Client):
        self.client = client

    async def get(self, id: int) -> Order:
        """Return an order by identifier; raises NotFoundError if it does not exist."""
        record = await self.client.request("GET", ("orders", id), decode=decoder(OrderRecord))
        return record.bind(self.client)

    def find(self, *, zone_id: int | None = None) -> OrderSequence:
        """
        Return a sequence of orders.

        Parameters:
        • zone_id: only orders in the zone with the specified identifier
        """
        params = {"with_zones": str(zone_id)} if zone_id is not None else {}
        return OrderSequence(self.client, **params)
