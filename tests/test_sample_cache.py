"""
Tests for the sample cache in front of the metric sample provider.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import NOW, DailySamples
from datasources.exceptions import DataSourceUnavailable, SampleUnavailable
from datasources.fallback import FallbackSampleProvider
from engine.baseline.compute import day_bounds
from store import keys
from store.client import _fallback, redis_get, redis_set
from store.samples import CachedSampleProvider


def _cached(provider):
    return CachedSampleProvider(provider, ttl=60, clock=lambda: NOW)


@pytest.mark.asyncio
async def test_closed_day_is_served_from_cache():
    inner = DailySamples()
    inner.set_series("m", date(2026, 3, 14), [42.0])
    cache = _cached(inner)
    start, end = day_bounds(date(2026, 3, 14))

    assert await cache.get_value("m", start, end) == 42.0
    inner.values["m"][date(2026, 3, 14)] = 99.0
    assert await cache.get_value("m", start, end) == 42.0
    assert len(inner.calls) == 1


@pytest.mark.asyncio
async def test_current_day_is_never_cached():
    inner = DailySamples()
    inner.set_series("m", NOW.date(), [1.0])
    cache = _cached(inner)
    start, end = day_bounds(NOW.date())

    assert await cache.get_value("m", start, end) == 1.0
    inner.values["m"][NOW.date()] = 2.0
    assert await cache.get_value("m", start, end) == 2.0
    assert await redis_get(keys.sample("m", start, end)) is None


@pytest.mark.asyncio
async def test_unreadable_cache_entry_is_refetched():
    inner = DailySamples()
    inner.set_series("m", date(2026, 3, 1), [7.0])
    start, end = day_bounds(date(2026, 3, 1))
    await redis_set(keys.sample("m", start, end), "not-a-number")

    assert await _cached(inner).get_value("m", start, end) == 7.0
    assert await redis_get(keys.sample("m", start, end)) == "7.0"


def test_availability_follows_inner_provider():
    assert _cached(DailySamples(available=False)).available is False
    assert _cached(DailySamples()).available is True


def test_sample_keys_distinguish_intervals():
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)
    day = keys.sample("m", start, start + timedelta(days=1))
    week = keys.sample("m", start, start + timedelta(days=7))
    assert day != week
    assert day.startswith("pc:sample:")


@pytest.mark.asyncio
async def test_fallback_entries_expire():
    await redis_set("k", "v", ttl=10)
    assert await redis_get("k") == "v"

    value, _ = _fallback["k"]
    _fallback["k"] = (value, 0.0)
    assert await redis_get("k") is None
    assert "k" not in _fallback


class FlakyAnalytics:
    base_url = "http://analytics"

    def __init__(self):
        self.down = True

    async def metric_value(self, metric, start, end):
        if self.down:
            raise DataSourceUnavailable("analytics unreachable")
        return 98.0

    async def metric_daily_series(self, metric):
        if self.down:
            raise DataSourceUnavailable("analytics unreachable")
        return []


@pytest.mark.asyncio
async def test_outage_is_not_cached_for_closed_days():
    conn = FlakyAnalytics()
    cache = _cached(FallbackSampleProvider(conn))
    start, end = day_bounds(date(2026, 3, 10))

    with pytest.raises(SampleUnavailable):
        await cache.get_value("m", start, end)
    assert await redis_get(keys.sample("m", start, end)) is None

    conn.down = False
    assert await cache.get_value("m", start, end) == 98.0
    assert await redis_get(keys.sample("m", start, end)) == "98.0"
