"""Choosing the address used to reach a node."""

from __future__ import annotations

from collections.abc import Iterable

from metricstore.objects import Node, NodeAddressType

# Overrides first, internal before external, DNS before IPs.
DEFAULT_ADDRESS_TYPE_PRIORITY = (
    NodeAddressType.HOSTNAME,
    NodeAddressType.INTERNAL_DNS,
    NodeAddressType.INTERNAL_IP,
    NodeAddressType.EXTERNAL_DNS,
    NodeAddressType.EXTERNAL_IP,
)


class AddressResolutionError(LookupError):
    """No address of a node matched the accepted types."""


class PriorityNodeAddressResolver:
    """Resolve by type priority, then by the order the node lists addresses."""

    def __init__(
        self, type_priority: Iterable[NodeAddressType] = DEFAULT_ADDRESS_TYPE_PRIORITY
    ) -> None:
        self.type_priority = tuple(type_priority)

    def node_address(self, node: Node) -> str:
        """Return the preferred address of the node."""
        for addr_type in self.type_priority:
            for addr in node.addresses:
                if addr.type == addr_type:
                    return addr.address
        names = " ".join(t.value for t in self.type_priority)
        raise AddressResolutionError(f"no address matched types [{names}]")