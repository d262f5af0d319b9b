"""
Compute logic for trailing-window baseline statistics (mean and population standard deviation) of a daily metric, used by the anomaly detector as the reference a current value is compared against.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from config import settings
from datasources.base import MetricSampleProvider

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovingWindowStats:
    mean: float
    std_dev: float
    values: List[float] = field(default_factory=list)

    @property
    def has_history(self) -> bool:
        return bool(self.values)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def compute(values: Sequence[float]) -> MovingWindowStats:
    if len(values) == 0:
        return MovingWindowStats(mean=0.0, std_dev=0.0, values=[])
    arr = np.array(values, dtype=float)
    # np.std defaults to ddof=0, the population deviation
    return MovingWindowStats(
        mean=float(arr.mean()),
        std_dev=float(arr.std()),
        values=[float(v) for v in arr],
    )


async def fetch_daily_values(
    provider: MetricSampleProvider,
    metric: str,
    first_day: date,
    days: int,
    missing: Optional[float] = 0.0,
) -> List[Optional[float]]:
    """Per-day values from ``first_day`` on; a day whose fetch fails reads as ``missing``."""
    sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))

    async def _one(day: date) -> float:
        start, end = day_bounds(day)
        async with sem:
            return await provider.get_value(metric, start, end)

    wanted = [first_day + timedelta(days=i) for i in range(days)]
    raw = await asyncio.gather(*[_one(d) for d in wanted], return_exceptions=True)

    values: List[Optional[float]] = []
    for day, r in zip(wanted, raw):
        if isinstance(r, Exception):
            log.warning("daily value %s@%s failed, using %r: %s", metric, day, missing, r)
            values.append(missing)
        else:
            values.append(float(r))
    return values


async def moving_stats(
    provider: MetricSampleProvider,
    metric: str,
    reference_date: date,
    window: int | None = None,
) -> MovingWindowStats:
    if window is None:
        window = settings.anomaly_window_days
    if not provider.available:
        return compute([])
    values = await fetch_daily_values(
        provider, metric, reference_date - timedelta(days=window), window
    )
    return compute(values)
