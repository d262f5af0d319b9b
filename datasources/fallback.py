"""
Fallback policy for reads from external data sources.

Every read goes through the same enumerated chain: the primary (indexed,
filtered) query first, then a broad scan filtered in memory, then a safe
default. Dashboards therefore degrade to "0" or "no data" instead of failing
when a backend rejects or cannot serve a query.

Two reads skip the default stage. Metric samples raise ``SampleUnavailable``
so a made-up 0 is never cached or compared against a baseline, and plan
lookups only read a missing profile as "no such subject".

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from datasources.base import ActivityWeek, MetricSampleProvider, SubjectDataProvider, SubscriptionProvider
from datasources.exceptions import ResourceNotFound, SampleUnavailable
from datasources.helpers import parse_timestamp

log = logging.getLogger(__name__)

T = TypeVar("T")


class FallbackStage(str, Enum):
    primary = "primary"
    scan = "scan"
    default = "default"


@dataclass(frozen=True)
class FallbackResult(Generic[T]):
    value: T
    stage: FallbackStage


async def resolve(
    label: str,
    primary: Callable[[], Awaitable[T]],
    default: T,
    scan: Optional[Callable[[], Awaitable[T]]] = None,
) -> FallbackResult[T]:
    try:
        return FallbackResult(await primary(), FallbackStage.primary)
    except Exception as exc:
        log.debug("%s: primary query failed (%s)", label, exc)
        primary_exc = exc

    if scan is not None:
        try:
            value = await scan()
            log.info("%s: served from scan after primary failure: %s", label, primary_exc)
            return FallbackResult(value, FallbackStage.scan)
        except Exception as exc:
            log.warning("%s: scan fallback failed (%s)", label, exc)

    log.warning("%s: no data source answered, using default %r", label, default)
    return FallbackResult(default, FallbackStage.default)


def _within(raw: Any, start: Optional[datetime], end: Optional[datetime] = None) -> bool:
    ts = parse_timestamp(raw)
    if ts is None:
        return False
    if start is not None and ts < start:
        return False
    if end is not None and ts >= end:
        return False
    return True


def _count_since(rows: Iterable[Dict[str, Any]], field: str, since: datetime) -> int:
    return sum(1 for row in rows if _within(row.get(field), since))


class FallbackSampleProvider(MetricSampleProvider):
    """Metric samples from the analytics connector with the scan fallback.

    The scan reads the metric's whole daily series and sums the days that
    fall inside the interval, which is exact for single-day intervals and for
    additive (count/sum) metrics over longer ones.

    When both fail it raises ``SampleUnavailable`` instead of returning the 0
    default, so caches never store it and callers decide how to fill the gap.
    """

    def __init__(self, connector: Any) -> None:
        self.connector = connector

    @property
    def available(self) -> bool:
        return bool(getattr(self.connector, "base_url", ""))

    async def get_value(self, metric: str, day_start: datetime, day_end: datetime) -> float:
        async def _scan() -> float:
            points = await self.connector.metric_daily_series(metric)
            return float(sum(
                float(p.get("value") or 0.0)
                for p in points
                if _within(p.get("day"), day_start, day_end)
            ))

        label = f"sample {metric}@{day_start.date().isoformat()}"
        result = await resolve(
            label,
            lambda: self.connector.metric_value(metric, day_start, day_end),
            0.0,
            scan=_scan,
        )
        if result.stage is FallbackStage.default:
            raise SampleUnavailable(f"{label}: no data source answered")
        return float(result.value)


class FallbackSubjectProvider(SubjectDataProvider):
    def __init__(self, connector: Any) -> None:
        self.connector = connector

    async def get_plan(self, subject_id: str) -> Optional[str]:
        # only ResourceNotFound means the subject is missing; other errors propagate
        try:
            profile = await self.connector.subject_profile(subject_id)
        except ResourceNotFound:
            log.debug("subject %s has no profile", subject_id)
            return None
        return str(profile.get("plan") or "free")

    async def weekly_activity(self, subject_id: str) -> List[ActivityWeek]:
        result = await resolve(
            f"subject {subject_id} weekly activity",
            lambda: self.connector.subject_weekly_activity(subject_id),
            [],
        )
        return result.value

    async def count_events(self, subject_id: str, since: datetime) -> int:
        async def _scan() -> int:
            return _count_since(await self.connector.subject_events(subject_id), "timestamp", since)

        result = await resolve(
            f"subject {subject_id} events",
            lambda: self.connector.count_subject_events(subject_id, since),
            0,
            scan=_scan,
        )
        return int(result.value)

    async def sentiment_scores(self, subject_id: str, since: datetime) -> List[float]:
        result = await resolve(
            f"subject {subject_id} sentiment",
            lambda: self.connector.subject_sentiment(subject_id, since),
            [],
        )
        return result.value

    async def count_support_errors(self, subject_id: str, since: datetime) -> int:
        async def _scan() -> int:
            return _count_since(await self.connector.support_errors(subject_id), "created_at", since)

        result = await resolve(
            f"subject {subject_id} support errors",
            lambda: self.connector.count_support_errors(subject_id, since),
            0,
            scan=_scan,
        )
        return int(result.value)


class FallbackSubscriptionProvider(SubscriptionProvider):
    def __init__(self, connector: Any) -> None:
        self.connector = connector

    async def active_plans(self) -> List[str]:
        async def _primary() -> List[str]:
            rows = await self.connector.subscriptions(status="active")
            return [str(r.get("plan") or "free") for r in rows]

        async def _scan() -> List[str]:
            rows = await self.connector.subscriptions()
            return [str(r.get("plan") or "free") for r in rows if r.get("status") == "active"]

        result = await resolve("active subscriptions", _primary, [], scan=_scan)
        return result.value

    async def count_canceled_since(self, since: datetime) -> int:
        async def _primary() -> int:
            rows = await self.connector.subscriptions(status="canceled", since=since)
            return len(rows)

        async def _scan() -> int:
            rows = await self.connector.subscriptions()
            canceled = [r for r in rows if r.get("status") == "canceled"]
            return _count_since(canceled, "canceled_at", since)

        result = await resolve("canceled subscriptions", _primary, 0, scan=_scan)
        return int(result.value)

    async def count_new_accounts_since(self, since: datetime) -> int:
        async def _scan() -> int:
            return _count_since(await self.connector.accounts(), "created_at", since)

        result = await resolve(
            "new accounts",
            lambda: self.connector.count_accounts_since(since),
            0,
            scan=_scan,
        )
        return int(result.value)
