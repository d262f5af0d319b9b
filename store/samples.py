"""
Read-through cache in front of a metric sample provider.

Only intervals that ended before the current UTC day started are cached:
a closed day no longer changes, while today's value is still accumulating.
Failed reads raise through and are never cached.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from config import SAMPLE_TTL
from datasources.base import MetricSampleProvider
from store import keys
from store.client import redis_delete, redis_get, redis_set

log = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CachedSampleProvider(MetricSampleProvider):
    def __init__(
        self,
        inner: MetricSampleProvider,
        ttl: int = SAMPLE_TTL,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.inner = inner
        self.ttl = ttl
        self.clock = clock

    @property
    def available(self) -> bool:
        return self.inner.available

    def _is_closed(self, day_end: datetime) -> bool:
        today = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        return day_end <= today

    async def _cached(self, key: str) -> Optional[float]:
        raw = await redis_get(key)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            log.debug("Discarding unreadable cached sample %s=%r", key, raw)
            await redis_delete(key)
            return None

    async def get_value(self, metric: str, day_start: datetime, day_end: datetime) -> float:
        if not self._is_closed(day_end):
            return await self.inner.get_value(metric, day_start, day_end)

        key = keys.sample(metric, day_start, day_end)
        cached = await self._cached(key)
        if cached is not None:
            return cached

        value = await self.inner.get_value(metric, day_start, day_end)
        await redis_set(key, repr(float(value)), ttl=self.ttl)
        return value
