"""
Ports for the external collaborators the engine reads from and writes through

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from engine.alerts.models import Alert, AlertRule


@dataclass(frozen=True)
class ActivityWeek:
    week_start: datetime
    logins: int = 0
    content_views: int = 0
    content_created: int = 0

    @property
    def total(self) -> int:
        return self.logins + self.content_views + self.content_created


class MetricSampleProvider(ABC):
    """Returns the scalar value of a metric over ``[day_start, day_end)``.

    How the value is derived (count, ratio, sum) is the provider's business.
    ``available`` is False when the backing source cannot be reached at all;
    callers treat that as "no history" rather than a zero baseline.
    """

    available: bool = True

    @abstractmethod
    async def get_value(self, metric: str, day_start: datetime, day_end: datetime) -> float: ...


class SubjectDataProvider(ABC):
    @abstractmethod
    async def get_plan(self, subject_id: str) -> Optional[str]:
        """Plan name for the subject, or None when the subject does not exist."""

    @abstractmethod
    async def weekly_activity(self, subject_id: str) -> List[ActivityWeek]: ...

    @abstractmethod
    async def count_events(self, subject_id: str, since: datetime) -> int: ...

    @abstractmethod
    async def sentiment_scores(self, subject_id: str, since: datetime) -> List[float]: ...

    @abstractmethod
    async def count_support_errors(self, subject_id: str, since: datetime) -> int: ...


class SubscriptionProvider(ABC):
    @abstractmethod
    async def active_plans(self) -> List[str]: ...

    @abstractmethod
    async def count_canceled_since(self, since: datetime) -> int: ...

    @abstractmethod
    async def count_new_accounts_since(self, since: datetime) -> int: ...


class AlertStore(ABC):
    @abstractmethod
    async def find_unresolved_by_source(self, source: str) -> Optional[Alert]: ...

    @abstractmethod
    async def create(self, alert: Alert) -> Optional[Alert]:
        """Insert ``alert`` unless an unresolved alert with the same source exists.

        Returns the stored alert, or None when the insert collided.
        """

    @abstractmethod
    async def get(self, alert_id: str) -> Optional[Alert]: ...

    @abstractmethod
    async def update(self, alert_id: str, patch: Dict[str, Any]) -> Optional[Alert]: ...

    @abstractmethod
    async def list_unresolved(self, limit: int) -> List[Alert]: ...


class AlertRuleSource(ABC):
    @abstractmethod
    async def list_enabled_rules(self) -> List[AlertRule]: ...
