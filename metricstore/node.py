"""Keeping the last two metric points of every node."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from metricstore.monitoring import POINTS_STORED
from metricstore.objects import Node
from metricstore.types import (
    MetricsBatch,
    MetricsPoint,
    Quantity,
    ResourceUsageError,
    resource_usage,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class NodeMetrics:
    """CPU and memory usage of one node over a window."""

    name: str
    labels: dict[str, str]
    timestamp: datetime
    window: timedelta
    usage: dict[str, Quantity]
    creation_timestamp: datetime = field(default_factory=_now)


class NodeStorage:
    """Holds the last and the preceding metric point of each node.

    A point is only kept as previous when it is strictly older than the
    last one, so the window between them is never empty.
    """

    def __init__(self) -> None:
        self.last: dict[str, MetricsPoint] = {}
        self.prev: dict[str, MetricsPoint] = {}

    def get_metrics(self, *args: Node) -> list[NodeMetrics]:
        """Return usage for the given nodes; nodes without two points are left out."""
        results = []
        for node in args:
            last = self.last.get(node.name)
            prev = self.prev.get(node.name)
            if last is None or prev is None:
                continue
            try:
                usage, info = resource_usage(last, prev)
            except ResourceUsageError as err:
                logger.error("Skipping node usage metric for %s: %s", node.name, err)
                continue
            results.append(
                NodeMetrics(
                    name=node.name,
                    labels=node.labels,
                    timestamp=info.timestamp,
                    window=info.window,
                    usage=usage,
                )
            )
        return results

    def store(self, batch: MetricsBatch) -> None:
        """Replace the stored points with those of a new batch."""
        last_nodes = dict(batch.nodes)
        prev_nodes: dict[str, MetricsPoint] = {}
        for name, new_point in batch.nodes.items():
            stored = self.last.get(name)
            if stored is None:
                continue
            if new_point.timestamp > stored.timestamp:
                prev_nodes[name] = stored
                continue
            earlier = self.prev.get(name)
            if earlier is None:
                continue
            if earlier.timestamp < new_point.timestamp:
                prev_nodes[name] = earlier
            else:
                logger.debug(
                    "Found new node metrics point is older than stored previous, "
                    "drop previous: node=%s previous=%s timestamp=%s",
                    name,
                    earlier.timestamp,
                    new_point.timestamp,
                )
        self.last = last_nodes
        self.prev = prev_nodes
        # Only nodes for which metrics can be returned are counted.
        POINTS_STORED.set("node", len(prev_nodes))