"""
SQL-backed alert store. Open-alert deduplication is enforced by the unique ``open_key`` column,
so two concurrent evaluations of the same source cannot both insert.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import get_db_session
from datasources.base import AlertStore
from datasources.exceptions import AlertPersistenceError
from db_models import AlertRow
from engine.alerts.models import Alert
from engine.enums import Channel, Severity

log = logging.getLogger(__name__)

_PATCHABLE = frozenset({"acknowledged_at", "acknowledged_by", "resolved_at", "resolved_by"})


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands timezone-aware columns back naive
    if ts is None or ts.tzinfo is not None:
        return ts
    return ts.replace(tzinfo=timezone.utc)


def _to_alert(row: AlertRow) -> Alert:
    return Alert(
        id=row.id,
        source=row.source,
        severity=Severity(row.severity),
        current_value=row.current_value,
        expected_value=row.expected_value,
        deviation=row.deviation,
        message=row.message,
        triggered_at=_aware(row.triggered_at),
        metric=row.metric,
        rule_name=row.rule_name,
        channels=tuple(Channel(c) for c in row.channels or []),
        acknowledged_at=_aware(row.acknowledged_at),
        acknowledged_by=row.acknowledged_by,
        resolved_at=_aware(row.resolved_at),
        resolved_by=row.resolved_by,
    )


def _to_row(alert: Alert) -> AlertRow:
    return AlertRow(
        id=alert.id,
        source=alert.source,
        open_key=alert.source if alert.resolved_at is None else None,
        severity=alert.severity.value,
        current_value=alert.current_value,
        expected_value=alert.expected_value,
        deviation=alert.deviation,
        message=alert.message,
        metric=alert.metric,
        rule_name=alert.rule_name,
        channels=[c.value for c in alert.channels],
        triggered_at=alert.triggered_at,
        acknowledged_at=alert.acknowledged_at,
        acknowledged_by=alert.acknowledged_by,
        resolved_at=alert.resolved_at,
        resolved_by=alert.resolved_by,
    )


class SqlAlertStore(AlertStore):
    def _find_unresolved_sync(self, source: str) -> Optional[Alert]:
        with get_db_session() as db:
            row = db.execute(select(AlertRow).where(AlertRow.open_key == source)).scalar_one_or_none()
            return _to_alert(row) if row is not None else None

    def _create_sync(self, alert: Alert) -> Optional[Alert]:
        try:
            with get_db_session() as db:
                db.add(_to_row(alert))
        except IntegrityError:
            log.debug("Open alert already exists for source %s", alert.source)
            return None
        return alert

    def _get_sync(self, alert_id: str) -> Optional[Alert]:
        with get_db_session() as db:
            row = db.get(AlertRow, alert_id)
            return _to_alert(row) if row is not None else None

    def _update_sync(self, alert_id: str, patch: Dict[str, Any]) -> Optional[Alert]:
        unknown = set(patch) - _PATCHABLE
        if unknown:
            raise ValueError(f"Alert fields not patchable: {', '.join(sorted(unknown))}")
        with get_db_session() as db:
            row = db.get(AlertRow, alert_id)
            if row is None:
                return None
            for key, value in patch.items():
                setattr(row, key, value)
            if row.resolved_at is not None:
                row.open_key = None
            db.flush()
            return _to_alert(row)

    def _list_unresolved_sync(self, limit: int) -> List[Alert]:
        with get_db_session() as db:
            rows = db.execute(
                select(AlertRow)
                .where(AlertRow.resolved_at.is_(None))
                .order_by(AlertRow.triggered_at.desc(), AlertRow.id)
                .limit(max(0, int(limit)))
            ).scalars().all()
            return [_to_alert(r) for r in rows]

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            raise AlertPersistenceError(str(exc)) from exc

    async def find_unresolved_by_source(self, source: str) -> Optional[Alert]:
        return await self._run(self._find_unresolved_sync, source)

    async def create(self, alert: Alert) -> Optional[Alert]:
        return await self._run(self._create_sync, alert)

    async def get(self, alert_id: str) -> Optional[Alert]:
        return await self._run(self._get_sync, alert_id)

    async def update(self, alert_id: str, patch: Dict[str, Any]) -> Optional[Alert]:
        return await self._run(self._update_sync, alert_id, patch)

    async def list_unresolved(self, limit: int) -> List[Alert]:
        return await self._run(self._list_unresolved_sync, limit)
