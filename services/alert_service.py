"""
Alert lifecycle manager: deduplicated creation from rule sweeps and anomaly sweeps, acknowledge and resolve.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, TypeVar

from config import settings
from datasources.base import AlertRuleSource, AlertStore
from datasources.exceptions import DataSourceError
from datasources.retry import retry
from engine.alerts.models import Alert, AlertRule, MetricsSnapshot
from engine.alerts.rules import build_alert, evaluate

log = logging.getLogger(__name__)

_T = TypeVar("_T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertService:
    def __init__(self, store: AlertStore, rules: AlertRuleSource) -> None:
        self.store = store
        self.rules = rules

    async def _persist(self, fn: Callable[..., Awaitable[_T]], *args: Any) -> _T:
        retried = retry(
            attempts=settings.alert_persist_attempts,
            delay=settings.alert_persist_delay,
            backoff=settings.alert_persist_backoff,
            max_delay=settings.alert_persist_max_delay,
            exceptions=(DataSourceError,),
        )(fn)
        return await retried(*args)

    async def create_if_absent(self, alert: Alert) -> Optional[Alert]:
        """Store ``alert`` unless its source already has an unresolved alert.

        The lookup only saves a write; the store's conditional insert decides.
        Persistence failures are logged and reported as None.
        """
        try:
            existing = await self._persist(self.store.find_unresolved_by_source, alert.source)
            if existing is not None:
                log.debug("Alert for %s already open as %s", alert.source, existing.id)
                return None
            created = await self._persist(self.store.create, alert)
        except DataSourceError as exc:
            log.error("Failed to persist alert for %s: %s", alert.source, exc)
            return None
        if created is None:
            log.debug("Concurrent alert for %s won the insert", alert.source)
        return created

    async def record(self, alerts: Sequence[Alert]) -> List[Alert]:
        raw = await asyncio.gather(*[self.create_if_absent(a) for a in alerts], return_exceptions=True)
        created: List[Alert] = []
        for alert, result in zip(alerts, raw):
            if isinstance(result, Exception):
                log.error("Recording alert %s failed: %s", alert.id, result)
                continue
            if result is not None:
                created.append(result)
        return created

    async def _evaluate_rule(self, rule: AlertRule, snapshot: MetricsSnapshot, now: datetime) -> Optional[Alert]:
        result = evaluate(rule, snapshot)
        if not result.triggered:
            return None
        return await self.create_if_absent(build_alert(rule, result, now))

    async def evaluate_rules(self, snapshot: MetricsSnapshot, now: datetime | None = None) -> List[Alert]:
        now = now or _utcnow()
        rules = [r for r in await self.rules.list_enabled_rules() if r.enabled]
        sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))

        async def _one(rule: AlertRule) -> Optional[Alert]:
            async with sem:
                return await self._evaluate_rule(rule, snapshot, now)

        raw = await asyncio.gather(*[_one(r) for r in rules], return_exceptions=True)
        created: List[Alert] = []
        for rule, result in zip(rules, raw):
            if isinstance(result, Exception):
                log.warning("Rule %s (%s) evaluation failed: %s", rule.id, rule.name, result)
                continue
            if result is not None:
                created.append(result)
        return created

    async def _transition(self, alert_id: str, patch: Dict[str, Any]) -> bool:
        updated = await self._persist(self.store.update, alert_id, patch)
        return updated is not None

    async def acknowledge(self, alert_id: str, actor_id: str, now: datetime | None = None) -> bool:
        alert = await self._persist(self.store.get, alert_id)
        if alert is None:
            return False
        if alert.acknowledged_at is not None or alert.resolved_at is not None:
            return True
        return await self._transition(alert_id, {
            "acknowledged_at": now or _utcnow(),
            "acknowledged_by": actor_id,
        })

    async def resolve(self, alert_id: str, actor_id: str, now: datetime | None = None) -> bool:
        alert = await self._persist(self.store.get, alert_id)
        if alert is None:
            return False
        if alert.resolved_at is not None:
            return True
        return await self._transition(alert_id, {
            "resolved_at": now or _utcnow(),
            "resolved_by": actor_id,
        })

    async def list_active(self, limit: int | None = None) -> List[Alert]:
        limit = settings.alerts_list_limit if limit is None else limit
        return await self._persist(self.store.list_unresolved, limit)
