"""Thread-safe store of node and pod metrics."""

from __future__ import annotations

import threading
from datetime import timedelta

from metricstore.node import NodeMetrics, NodeStorage
from metricstore.objects import Node, PodMetadata
from metricstore.pod import PodMetrics, PodStorage
from metricstore.types import MetricsBatch


class Storage:
    """Keeps node and pod metric points and serves their usage."""

    def __init__(self, metric_resolution: timedelta) -> None:
        self._lock = threading.Lock()
        self._nodes = NodeStorage()
        self._pods = PodStorage(metric_resolution)

    def ready(self) -> bool:
        """True once enough points are stored to serve any metrics."""
        with self._lock:
            return bool(self._nodes.prev) or bool(self._pods.prev)

    def get_node_metrics(self, *args: Node) -> list[NodeMetrics]:
        """Return usage of the given nodes."""
        with self._lock:
            return self._nodes.get_metrics(*args)

    def get_pod_metrics(self, *args: PodMetadata) -> list[PodMetrics]:
        """Return usage of the given pods."""
        with self._lock:
            return self._pods.get_metrics(*args)

    def store(self, batch: MetricsBatch) -> None:
        """Take in one scrape's batch of points."""
        with self._lock:
            self._nodes.store(batch)
            self._pods.store(batch)