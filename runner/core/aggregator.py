"""Statistics over repeated-run metric series."""

from __future__ import annotations

import math
from typing import Iterable

from common.models.metrics import AggregateStat, MetricSeries


class StatAggregator:
    """Mean and population standard deviation.

    The population formula ``sqrt(sum((x - mean)^2) / n)`` is used for every
    metric. An empty series yields mean 0 and stddev 0 with count 0.
    """

    def aggregate(self, series: MetricSeries | Iterable[float]) -> AggregateStat:
        if isinstance(series, MetricSeries):
            series.freeze()
        values = [float(v) for v in series]
        n = len(values)
        if n == 0:
            return AggregateStat(mean=0.0, stddev=0.0, count=0)

        mean = math.fsum(values) / n
        variance = math.fsum((x - mean) ** 2 for x in values) / n
        return AggregateStat(
            mean=mean,
            stddev=math.sqrt(max(variance, 0.0)),
            count=n,
        )


def aggregate(series: MetricSeries | Iterable[float]) -> AggregateStat:
    """Aggregate a series with the default aggregator."""
    return StatAggregator().aggregate(series)
