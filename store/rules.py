"""
SQL-backed alert rule source.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from database import get_db_session
from datasources.base import AlertRuleSource
from datasources.exceptions import AlertPersistenceError
from db_models import AlertRuleRow
from engine.alerts.models import AlertRule
from engine.enums import Channel, Operator, RuleMetric, Severity

log = logging.getLogger(__name__)


def _to_rule(row: AlertRuleRow) -> Optional[AlertRule]:
    try:
        return AlertRule(
            id=row.id,
            name=row.name,
            metric=RuleMetric(row.metric),
            threshold=float(row.threshold),
            operator=Operator(row.operator),
            channels=tuple(Channel(c) for c in row.channels or []),
            enabled=bool(row.enabled),
            severity=Severity(row.severity) if row.severity else None,
            description=row.description,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
    except ValueError as exc:
        log.warning("Skipping malformed alert rule %s: %s", row.id, exc)
        return None


def to_row(rule: AlertRule) -> AlertRuleRow:
    row = AlertRuleRow(
        id=rule.id,
        name=rule.name,
        metric=rule.metric.value,
        threshold=rule.threshold,
        operator=rule.operator.value,
        channels=[c.value for c in rule.channels],
        enabled=rule.enabled,
        severity=rule.severity.value if rule.severity else None,
        description=rule.description,
        created_by=rule.created_by,
        updated_at=rule.updated_at,
    )
    if rule.created_at is not None:
        row.created_at = rule.created_at
    return row


class SqlAlertRuleSource(AlertRuleSource):
    def _list_enabled_sync(self) -> List[AlertRule]:
        with get_db_session() as db:
            rows = db.execute(
                select(AlertRuleRow).where(AlertRuleRow.enabled.is_(True)).order_by(AlertRuleRow.id)
            ).scalars().all()
            return [r for r in (_to_rule(row) for row in rows) if r is not None]

    def _save_sync(self, rule: AlertRule) -> None:
        with get_db_session() as db:
            db.merge(to_row(rule))

    async def list_enabled_rules(self) -> List[AlertRule]:
        try:
            return await asyncio.to_thread(self._list_enabled_sync)
        except SQLAlchemyError as exc:
            raise AlertPersistenceError(str(exc)) from exc

    async def save(self, rule: AlertRule) -> None:
        try:
            await asyncio.to_thread(self._save_sync, rule)
        except SQLAlchemyError as exc:
            raise AlertPersistenceError(str(exc)) from exc
