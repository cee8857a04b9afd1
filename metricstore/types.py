"""Metric points, batches and the arithmetic that turns them into usage."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from metricstore.objects import NamespacedName

logger = logging.getLogger(__name__)

MAX_INT64 = 2**63 - 1
MAX_UINT64 = 2**64 - 1

RESOURCE_CPU = "cpu"
RESOURCE_MEMORY = "memory"


class ResourceUsageError(ValueError):
    """Two metric points cannot be combined into a usage value."""


class Format(str, enum.Enum):
    """How a quantity prefers to be written."""

    DECIMAL_EXPONENT = "DecimalExponent"
    BINARY_SI = "BinarySI"
    DECIMAL_SI = "DecimalSI"


@dataclass(frozen=True)
class Quantity:
    """A fixed-point amount: ``unscaled * 10 ** scale``."""

    unscaled: int
    scale: int = 0
    format: Format = Format.DECIMAL_SI

    def _scaled_value(self, target: int) -> int:
        if self.scale >= target:
            return self.unscaled * 10 ** (self.scale - target)
        # Round up, away from the lost precision.
        return -(-self.unscaled // 10 ** (target - self.scale))

    def value(self) -> int:
        """Return the amount as a whole number, rounded up."""
        return self._scaled_value(0)

    def milli_value(self) -> int:
        """Return the amount in thousandths, rounded up."""
        return self._scaled_value(-3)


@dataclass(frozen=True)
class TimeInfo:
    """When a usage value was measured and over which window."""

    timestamp: datetime
    window: timedelta


@dataclass(frozen=True)
class MetricsPoint:
    """Cumulative CPU and memory of a node or container at one moment.

    ``cumulative_cpu_used`` is in nanocore-seconds since ``start_time``;
    ``memory_usage`` is the working set in bytes. A missing start time is
    the earliest possible time.
    """

    timestamp: datetime
    cumulative_cpu_used: int = 0
    memory_usage: int = 0
    start_time: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start_time is None:
            zero = datetime.min.replace(tzinfo=self.timestamp.tzinfo)
            object.__setattr__(self, "start_time", zero)


@dataclass
class PodMetricsPoint:
    """Metric points for the containers of one pod, keyed by container name."""

    containers: dict[str, MetricsPoint] = field(default_factory=dict)


@dataclass
class MetricsBatch:
    """One scrape's worth of node and pod metric points."""

    nodes: dict[str, MetricsPoint] = field(default_factory=dict)
    pods: dict[NamespacedName, PodMetricsPoint] = field(default_factory=dict)


def resource_usage(
    last: MetricsPoint, prev: MetricsPoint
) -> tuple[dict[str, Quantity], TimeInfo]:
    """Compute CPU rate and memory usage between two points of one series."""
    if last.start_time < prev.start_time:
        raise ResourceUsageError("unexpected decrease in startTime of node/container")
    if last.cumulative_cpu_used < prev.cumulative_cpu_used:
        raise ResourceUsageError("unexpected decrease in cumulative CPU usage value")
    window = last.timestamp - prev.timestamp
    seconds = window.total_seconds()
    if seconds <= 0:
        raise ResourceUsageError("non-positive time window between metric points")
    cpu_usage = (last.cumulative_cpu_used - prev.cumulative_cpu_used) / seconds
    usage = {
        RESOURCE_CPU: uint64_quantity(int(cpu_usage), Format.DECIMAL_SI, -9),
        RESOURCE_MEMORY: uint64_quantity(last.memory_usage, Format.BINARY_SI, 0),
    }
    return usage, TimeInfo(timestamp=last.timestamp, window=window)


def uint64_quantity(val: int, format: Format, scale: int) -> Quantity:
    """Build a quantity from an unsigned 64-bit value.

    Values above the signed 64-bit range lose one decimal digit of precision.
    """
    if not 0 <= val <= MAX_UINT64:
        raise ValueError(f"value {val} is outside the unsigned 64-bit range")
    if val > MAX_INT64:
        logger.debug(
            "Found unexpectedly large resource value, losing precision to fit "
            "in scaled quantity: %d",
            val,
        )
        return Quantity(val // 10, scale + 1, format)
    return Quantity(val, scale, format)