# metricstore

An in-memory store for resource metrics taken from nodes and containers.
Each scrape is handed over as a batch of cumulative CPU counters and memory
readings. The store keeps the last two points per node and per container and
turns them into a CPU rate and a current memory figure over the window
between them.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Storing and reading metrics

```python
from datetime import datetime, timedelta

from metricstore.objects import NamespacedName, Node, PodMetadata
from metricstore.storage import Storage
from metricstore.types import MetricsBatch, MetricsPoint, PodMetricsPoint

store = Storage(timedelta(seconds=60))
start = datetime.now()

def batch(offset, cpu, memory):
    point = MetricsPoint(
        start_time=start,
        timestamp=start + timedelta(seconds=offset),
        cumulative_cpu_used=cpu,
        memory_usage=memory,
    )
    return MetricsBatch(
        nodes={"node1": point},
        pods={NamespacedName(namespace="ns1", name="pod1"):
              PodMetricsPoint(containers={"app": point})},
    )

store.store(batch(110, 10 * 10**9, 2 * 1024**2))
store.store(batch(120, 20 * 10**9, 3 * 1024**2))

store.ready()                                    # True
[node] = store.get_node_metrics(Node(name="node1"))
node.usage["cpu"].milli_value()                  # 1000
node.usage["memory"].value()                     # 3145728
node.window                                      # timedelta(seconds=10)

[pod] = store.get_pod_metrics(PodMetadata(namespace="ns1", name="pod1"))
pod.containers[0].name                           # "app"
```

`cumulative_cpu_used` is in nanocore-seconds since `start_time`, and
`memory_usage` is in bytes. A `MetricsPoint` without a `start_time` is treated
as having started at the earliest possible time. Usage values are `Quantity`
objects (`unscaled * 10 ** scale`); `value()` and `milli_value()` round up.

Behaviour worth knowing:

- `Storage.ready()` is true once at least one node or container has a previous
  point stored.
- A node or container gives results only once two points with increasing
  timestamps have been stored. A new point that is not newer than the stored
  one keeps the stored previous point only if that one is older than the new
  point; otherwise the history is dropped.
- A container whose start time is not earlier than its stored point is taken
  to have restarted, and its stored point is discarded. A container whose
  point lies at least 10 seconds, and less than the metric resolution, after
  its start time is measured from its start time straight away.
- A pod is reported only if every container in the latest batch also has a
  previous point. Its `timestamp` and `window` are those of its earliest
  container; `timestamp` is `None` if no container usage could be computed.
- When the CPU counter went down or the start time moved backwards, that node
  is left out, or that container is left out of its pod's `containers`.

## Other helpers

- `metricstore.types.resource_usage(last, prev)` computes the usage and a
  `TimeInfo` between two points, raising `ResourceUsageError` when they are
  inconsistent or the window is not positive.
- `metricstore.types.uint64_quantity(val, format, scale)` builds a `Quantity`
  from an unsigned 64-bit value, dropping one decimal digit above the signed
  64-bit range.
- `metricstore.monitoring.POINTS_STORED` is a `GaugeVec` named
  `metrics_server_storage_points`, labelled by `type` (`node` or
  `container`), set on every store. `collect()` renders it in the text
  exposition format; `register_storage_metrics(registration_func)` hands it to
  a registry of your choosing.
- `metricstore.buckets.buckets_for_scrape_duration(scrape_timeout)` returns
  histogram buckets that bracket a given scrape timeout.
- `metricstore.address_resolver.PriorityNodeAddressResolver` picks a node's
  address by a priority list of `NodeAddressType`s, raising
  `AddressResolutionError` when none matches.

## What it does not do

The package only stores and computes. It does not contact nodes to collect
points, serve metrics over HTTP, or provide a command to run; those are left
to the code that uses it.