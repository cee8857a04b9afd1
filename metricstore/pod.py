"""Keeping the last two metric points of every container of every pod."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from metricstore.monitoring import POINTS_STORED
from metricstore.objects import NamespacedName, PodMetadata
from metricstore.types import (
    MetricsBatch,
    PodMetricsPoint,
    Quantity,
    ResourceUsageError,
    TimeInfo,
    resource_usage,
)

logger = logging.getLogger(__name__)

# A fresh container needs at least this long between start and measurement
# before its start time is trusted as a zero point; shorter gives bad data.
FRESH_CONTAINER_MIN_METRICS_RESOLUTION = timedelta(seconds=10)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ContainerMetrics:
    """Usage of one container."""

    name: str
    usage: dict[str, Quantity]


@dataclass
class PodMetrics:
    """Usage of the containers of one pod.

    ``timestamp`` and ``window`` come from the earliest measured container;
    ``timestamp`` is None when no container usage could be computed.
    """

    name: str
    namespace: str
    labels: dict[str, str]
    timestamp: Optional[datetime]
    window: timedelta
    containers: list[ContainerMetrics]
    creation_timestamp: datetime = field(default_factory=_now)


class PodStorage:
    """Holds the last and the preceding metric point of each pod's containers."""

    def __init__(self, metric_resolution: timedelta) -> None:
        self.metric_resolution = metric_resolution
        self.last: dict[NamespacedName, PodMetricsPoint] = {}
        self.prev: dict[NamespacedName, PodMetricsPoint] = {}

    def get_metrics(self, *args: PodMetadata) -> list[PodMetrics]:
        """Return usage for the given pods.

        A pod is left out unless every container has two points.
        """
        results = []
        for pod in args:
            ref = pod.ref()
            last_pod = self.last.get(ref)
            prev_pod = self.prev.get(ref)
            if last_pod is None or prev_pod is None:
                continue
            if any(name not in prev_pod.containers for name in last_pod.containers):
                continue
            containers = []
            earliest: Optional[TimeInfo] = None
            for name, last_point in last_pod.containers.items():
                try:
                    usage, info = resource_usage(last_point, prev_pod.containers[name])
                except ResourceUsageError as err:
                    logger.error(
                        "Skipping container usage metric for %s in pod %s: %s",
                        name,
                        ref,
                        err,
                    )
                    continue
                containers.append(ContainerMetrics(name=name, usage=usage))
                if earliest is None or earliest.timestamp > info.timestamp:
                    earliest = info
            results.append(
                PodMetrics(
                    name=pod.name,
                    namespace=pod.namespace,
                    labels=pod.labels,
                    timestamp=earliest.timestamp if earliest else None,
                    window=earliest.window if earliest else timedelta(0),
                    containers=containers,
                )
            )
        return results

    def _is_fresh(self, age: timedelta) -> bool:
        return FRESH_CONTAINER_MIN_METRICS_RESOLUTION <= age < self.metric_resolution

    def store(self, batch: MetricsBatch) -> None:
        """Replace the stored points with those of a new batch."""
        last_pods: dict[NamespacedName, PodMetricsPoint] = {}
        prev_pods: dict[NamespacedName, PodMetricsPoint] = {}
        container_count = 0
        for ref, new_pod in batch.pods.items():
            new_last = PodMetricsPoint(containers=dict(new_pod.containers))
            new_prev = PodMetricsPoint()
            stored_last = self.last.get(ref)
            stored_prev = self.prev.get(ref)
            for name, new_point in new_pod.containers.items():
                started = new_point.start_time
                if started < new_point.timestamp and self._is_fresh(
                    new_point.timestamp - started
                ):
                    # A container started recently: its start is a zero point.
                    new_prev.containers[name] = dataclasses.replace(
                        new_point, timestamp=started, cumulative_cpu_used=0
                    )
                    continue
                if stored_last is None:
                    continue
                last_point = stored_last.containers.get(name)
                # A start after the stored point means a restart: drop history.
                if last_point is None or not started < last_point.timestamp:
                    continue
                if new_point.timestamp > last_point.timestamp:
                    new_prev.containers[name] = last_point
                    continue
                if stored_prev is None:
                    continue
                prev_point = stored_prev.containers.get(name)
                if prev_point is not None and prev_point.timestamp < new_point.timestamp:
                    new_prev.containers[name] = prev_point
                else:
                    logger.debug(
                        "Found new container metrics point is older than stored "
                        "previous, drop previous: container=%s pod=%s timestamp=%s",
                        name,
                        ref,
                        new_point.timestamp,
                    )
            if new_prev.containers:
                prev_pods[ref] = new_prev
            last_pods[ref] = new_last
            # Only containers for which metrics can be returned are counted.
            container_count += len(new_prev.containers)
        self.last = last_pods
        self.prev = prev_pods
        POINTS_STORED.set("container", container_count)