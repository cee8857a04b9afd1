from datetime import datetime, timedelta, timezone

import pytest

from metricstore.types import (
    MAX_INT64,
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    Format,
    MetricsBatch,
    MetricsPoint,
    PodMetricsPoint,
    Quantity,
    ResourceUsageError,
    TimeInfo,
    resource_usage,
    uint64_quantity,
)

MI_BYTE = 1024 * 1024
CORE_SECOND = 1000 * 1000 * 1000


def new_metrics_point(st, ts, cpu, memory):
    return MetricsPoint(
        start_time=st, timestamp=ts, cumulative_cpu_used=cpu, memory_usage=memory
    )


@pytest.mark.parametrize(
    "value, expected",
    [
        (MAX_INT64 + 10, Quantity(MAX_INT64 // 10 + 1, 1)),
        (MAX_INT64 + 20, Quantity(MAX_INT64 // 10 + 2, 1)),
        (MAX_INT64 - 10, Quantity(MAX_INT64 - 10, 0)),
        (MAX_INT64 - 100, Quantity(MAX_INT64 - 100, 0)),
    ],
)
def test_uint64_quantity(value, expected):
    assert uint64_quantity(value, Format.DECIMAL_SI, 0) == expected


def test_uint64_quantity_rejects_negative():
    with pytest.raises(ValueError):
        uint64_quantity(-1, Format.DECIMAL_SI, 0)


def test_uint64_quantity_keeps_format():
    assert uint64_quantity(3 * MI_BYTE, Format.BINARY_SI, 0) == Quantity(
        3 * MI_BYTE, 0, Format.BINARY_SI
    )


def test_resource_usage_success():
    start = datetime.now(timezone.utc)
    last = new_metrics_point(start, start + timedelta(milliseconds=20), 500, 600)
    prev = new_metrics_point(start, start + timedelta(milliseconds=10), 300, 400)
    usage, info = resource_usage(last, prev)
    assert usage == {
        RESOURCE_CPU: uint64_quantity(20000, Format.DECIMAL_SI, -9),
        RESOURCE_MEMORY: uint64_quantity(600, Format.BINARY_SI, 0),
    }
    assert info == TimeInfo(
        timestamp=start + timedelta(milliseconds=20),
        window=timedelta(milliseconds=10),
    )


def test_resource_usage_start_time_decrease():
    start = datetime.now(timezone.utc)
    last = new_metrics_point(start, start + timedelta(milliseconds=20), 500, 600)
    prev = new_metrics_point(
        start + timedelta(milliseconds=20), start + timedelta(milliseconds=10), 300, 400
    )
    with pytest.raises(ResourceUsageError, match="startTime"):
        resource_usage(last, prev)


def test_resource_usage_cpu_decrease():
    start = datetime.now(timezone.utc)
    last = new_metrics_point(start, start + timedelta(milliseconds=20), 100, 600)
    prev = new_metrics_point(start, start + timedelta(milliseconds=10), 300, 400)
    with pytest.raises(ResourceUsageError, match="cumulative CPU"):
        resource_usage(last, prev)


def test_resource_usage_zero_window():
    start = datetime.now(timezone.utc)
    point = new_metrics_point(start, start + timedelta(seconds=10), 100, 600)
    with pytest.raises(ResourceUsageError):
        resource_usage(point, point)


def test_resource_usage_core_second_rate():
    start = datetime.now(timezone.utc)
    prev = new_metrics_point(start, start + timedelta(seconds=10), 10 * CORE_SECOND, 2 * MI_BYTE)
    last = new_metrics_point(start, start + timedelta(seconds=20), 20 * CORE_SECOND, 3 * MI_BYTE)
    usage, info = resource_usage(last, prev)
    assert usage[RESOURCE_CPU] == Quantity(CORE_SECOND, -9)
    assert usage[RESOURCE_MEMORY] == Quantity(3 * MI_BYTE, 0, Format.BINARY_SI)
    assert info.window == timedelta(seconds=10)


def test_quantity_values():
    cpu = Quantity(CORE_SECOND, -9)
    assert cpu.milli_value() == 1000
    assert cpu.value() == 1
    memory = Quantity(5 * MI_BYTE, 0, Format.BINARY_SI)
    assert memory.value() // 1024 // 1024 == 5


def test_quantity_rounds_up():
    assert Quantity(1, -9).milli_value() == 1
    assert Quantity(1, -9).value() == 1


def test_quantity_scaled_up():
    assert Quantity(MAX_INT64 // 10 + 1, 1).value() == (MAX_INT64 // 10 + 1) * 10


def test_metrics_point_missing_start_time_is_earliest():
    ts = datetime.now(timezone.utc)
    point = MetricsPoint(timestamp=ts, cumulative_cpu_used=CORE_SECOND)
    assert point.start_time < ts
    other = new_metrics_point(ts, ts + timedelta(seconds=10), 2 * CORE_SECOND, 0)
    usage, _ = resource_usage(other, point)
    assert usage[RESOURCE_CPU] == Quantity(CORE_SECOND // 10, -9)


def test_batch_defaults_are_empty():
    batch = MetricsBatch()
    assert batch.nodes == {}
    assert batch.pods == {}
    assert PodMetricsPoint().containers == {}