"""Histogram buckets that bracket the scrape timeout."""

from __future__ import annotations

from datetime import timedelta

DEFAULT_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def buckets_for_scrape_duration(scrape_timeout: timedelta) -> list[float]:
    """Return the default buckets with extra ones around the scrape timeout."""
    buckets = list(DEFAULT_BUCKETS)
    max_bucket = buckets[-1]
    timeout = scrape_timeout.total_seconds()
    if timeout > max_bucket:
        halfway = max_bucket + (timeout - max_bucket) / 2
        buckets.extend((halfway, timeout, timeout * 1.5, timeout * 2.0))
    elif timeout < max_bucket:
        index = next(i for i, bucket in enumerate(buckets) if bucket > timeout)
        smallest = buckets[0]
        close_above = buckets[index] - timeout < smallest
        close_below = index > 0 and timeout - buckets[index - 1] < smallest
        if not (close_above or close_below):
            buckets.insert(index, timeout)
    return buckets