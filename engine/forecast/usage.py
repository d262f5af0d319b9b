"""
Usage forecasting over weekly buckets: the trailing weeks are smoothed exponentially, a growth rate is taken between the first and last four smoothed weeks, and a linear fit on the recent weeks is extrapolated over the requested period with a fixed confidence band.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import List

import numpy as np

from config import settings
from datasources.base import MetricSampleProvider
from engine.constants import USAGE_METRIC_SOURCES
from engine.enums import ForecastPeriod, Trend, UsageMetric
from engine.forecast.models import ForecastResult
from engine.forecast.smoothing import exponential_smoothing, linear_regression

log = logging.getLogger(__name__)


async def weekly_buckets(
    provider: MetricSampleProvider,
    metric: str,
    now: datetime,
    weeks: int,
) -> List[float]:
    start = now - timedelta(days=7 * weeks)
    sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))

    async def _week(i: int) -> float:
        week_start = start + timedelta(days=7 * i)
        async with sem:
            return await provider.get_value(metric, week_start, week_start + timedelta(days=7))

    raw = await asyncio.gather(*[_week(i) for i in range(weeks)], return_exceptions=True)
    values: List[float] = []
    for i, r in enumerate(raw):
        if isinstance(r, Exception):
            log.warning("weekly bucket %d for %s failed, counting as 0: %s", i, metric, r)
            values.append(0.0)
        else:
            values.append(float(r))
    return values


def project(history: List[float], period: ForecastPeriod, metric: str) -> ForecastResult:
    smoothed = exponential_smoothing(history)
    tail = settings.forecast_usage_tail_weeks
    recent = smoothed[-tail:]
    earlier = smoothed[:tail]

    avg_recent = float(np.mean(recent)) if recent else 0.0
    avg_earlier = float(np.mean(earlier)) if earlier else 0.0
    growth = (avg_recent - avg_earlier) / avg_earlier * 100.0 if avg_earlier > 0 else 0.0

    slope, intercept = linear_regression([(float(i), y) for i, y in enumerate(recent)])
    forecasted = slope * (len(recent) + period.days / 7.0) + intercept
    band = settings.forecast_usage_band

    return ForecastResult(
        metric=metric,
        period=period,
        forecasted_value=float(round(forecasted)),
        confidence_interval=(
            float(round(forecasted * (1 - band))),
            float(round(forecasted * (1 + band))),
        ),
        trend=Trend.from_growth(growth, settings.forecast_trend_threshold_pct),
        growth_rate=round(growth, 2),
    )


async def forecast_usage(
    provider: MetricSampleProvider,
    metric: UsageMetric,
    period: ForecastPeriod,
    now: datetime | None = None,
) -> ForecastResult:
    now = now or datetime.now(timezone.utc)
    source = USAGE_METRIC_SOURCES.get(metric.value, metric.value)
    history = await weekly_buckets(provider, source, now, settings.forecast_usage_weeks)
    log.debug("usage history for %s: %s", metric.value, history)
    return project(history, period, metric.value)
