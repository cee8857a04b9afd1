"""Plain descriptions of the cluster objects that metrics are kept for."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class NamespacedName:
    """Identifies a namespaced object, such as a pod."""

    namespace: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class NodeAddressType(str, enum.Enum):
    """Kinds of address a node may report."""

    HOSTNAME = "Hostname"
    INTERNAL_DNS = "InternalDNS"
    INTERNAL_IP = "InternalIP"
    EXTERNAL_DNS = "ExternalDNS"
    EXTERNAL_IP = "ExternalIP"


@dataclass(frozen=True)
class NodeAddress:
    """One address reported by a node."""

    type: NodeAddressType
    address: str


@dataclass
class Node:
    """A cluster node: its name, labels and reported addresses."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    addresses: list[NodeAddress] = field(default_factory=list)


@dataclass
class PodMetadata:
    """The metadata of a pod that metrics are requested for."""

    name: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    def ref(self) -> NamespacedName:
        """Return the namespaced name of this pod."""
        return NamespacedName(namespace=self.namespace, name=self.name)