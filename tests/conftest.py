import os
import sys
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest

# ensure workspace root is on sys.path so our application packages can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from datasources.base import (
    ActivityWeek,
    AlertRuleSource,
    AlertStore,
    MetricSampleProvider,
    SubjectDataProvider,
    SubscriptionProvider,
)
from engine.alerts.models import Alert, AlertRule
from store.client import _fallback


@pytest.fixture(autouse=True)
def clear_fallback(monkeypatch):
    """Wipe the in-memory redis fallback around each test and force every
    cache call onto it so tests never attempt network.
    """
    import store.client as client

    _fallback.clear()

    async def no_redis():
        return None

    monkeypatch.setattr(client, "get_redis", no_redis)
    monkeypatch.setattr(client, "_redis_client", None)

    yield

    _fallback.clear()


@pytest.fixture
def db():
    """Fresh in-memory SQLite database for the SQL stores."""
    import database

    database.dispose_database()
    database.init_database("sqlite://")
    database.init_db()
    yield database
    database.dispose_database()


class DailySamples(MetricSampleProvider):
    """Samples keyed by (metric, day); missing days read as 0."""

    def __init__(self, values: Optional[Dict[str, Dict[date, float]]] = None, available: bool = True):
        self.values = values or {}
        self.available = available
        self.calls: List[tuple] = []
        self.fail_days: set = set()

    def set_series(self, metric: str, last_day: date, series: List[float]) -> None:
        from datetime import timedelta

        days = self.values.setdefault(metric, {})
        first = last_day - timedelta(days=len(series) - 1)
        for i, v in enumerate(series):
            days[first + timedelta(days=i)] = v

    async def get_value(self, metric, day_start, day_end):
        self.calls.append((metric, day_start, day_end))
        day = day_start.date()
        if day in self.fail_days:
            raise RuntimeError(f"backend rejected {metric}@{day}")
        return self.values.get(metric, {}).get(day, 0.0)


class FakeSubjects(SubjectDataProvider):
    def __init__(self):
        self.plans: Dict[str, str] = {}
        self.activity: Dict[str, List[ActivityWeek]] = {}
        self.events: Dict[str, int] = {}
        self.sentiments: Dict[str, List[float]] = {}
        self.errors: Dict[str, int] = {}
        self.broken: set = set()

    async def get_plan(self, subject_id):
        if subject_id in self.broken:
            raise RuntimeError("profile lookup exploded")
        return self.plans.get(subject_id)

    async def weekly_activity(self, subject_id):
        return list(self.activity.get(subject_id, []))

    async def count_events(self, subject_id, since):
        return self.events.get(subject_id, 0)

    async def sentiment_scores(self, subject_id, since):
        return list(self.sentiments.get(subject_id, []))

    async def count_support_errors(self, subject_id, since):
        return self.errors.get(subject_id, 0)


class FakeSubscriptions(SubscriptionProvider):
    def __init__(self, plans=None, canceled=0, new_accounts=0):
        self.plans = list(plans or [])
        self.canceled = canceled
        self.new_accounts = new_accounts

    async def active_plans(self):
        return list(self.plans)

    async def count_canceled_since(self, since):
        return self.canceled

    async def count_new_accounts_since(self, since):
        return self.new_accounts


class MemoryAlertStore(AlertStore):
    """Dict-backed store with the same conditional-insert contract as the SQL store."""

    def __init__(self):
        self.alerts: Dict[str, Alert] = {}
        self.create_calls = 0

    async def find_unresolved_by_source(self, source):
        for a in self.alerts.values():
            if a.source == source and a.resolved_at is None:
                return a
        return None

    async def create(self, alert):
        self.create_calls += 1
        if alert.id in self.alerts or await self.find_unresolved_by_source(alert.source):
            return None
        self.alerts[alert.id] = alert
        return alert

    async def get(self, alert_id):
        return self.alerts.get(alert_id)

    async def update(self, alert_id, patch):
        from dataclasses import replace

        if alert_id not in self.alerts:
            return None
        self.alerts[alert_id] = replace(self.alerts[alert_id], **patch)
        return self.alerts[alert_id]

    async def list_unresolved(self, limit):
        open_ = [a for a in self.alerts.values() if a.resolved_at is None]
        open_.sort(key=lambda a: a.triggered_at, reverse=True)
        return open_[:limit]


class StaticRules(AlertRuleSource):
    def __init__(self, rules: List[AlertRule]):
        self.rules = list(rules)

    async def list_enabled_rules(self):
        return [r for r in self.rules if r.enabled]


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW
