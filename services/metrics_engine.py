"""
Facade over the anomaly detector, forecasting engine, churn scorer and alert lifecycle.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence, Tuple

from datasources.base import MetricSampleProvider, SubjectDataProvider, SubscriptionProvider
from engine.alerts.models import Alert, MetricsSnapshot
from engine.anomaly.detection import MetricConfig, detect
from engine.churn.scoring import ChurnPrediction, predict_churn, predict_churn_batch
from engine.constants import DEFAULT_METRIC_CONFIGS
from engine.enums import ForecastPeriod, Severity, UsageMetric
from engine.forecast.models import ForecastResult, RevenueForecast
from engine.forecast.revenue import forecast_revenue
from engine.forecast.usage import forecast_usage
from services.alert_service import AlertService

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnomalyReport:
    reference_date: date
    alerts: Tuple[Alert, ...]
    created: Tuple[Alert, ...]

    @property
    def count(self) -> int:
        return len(self.alerts)

    @property
    def critical_count(self) -> int:
        return sum(1 for a in self.alerts if a.severity is Severity.critical)

    @property
    def warning_count(self) -> int:
        return sum(1 for a in self.alerts if a.severity is Severity.warning)


class MetricsEngine:
    def __init__(
        self,
        samples: MetricSampleProvider,
        subjects: SubjectDataProvider,
        subscriptions: SubscriptionProvider,
        alerts: AlertService,
        metric_configs: Optional[Sequence[MetricConfig]] = None,
    ) -> None:
        self.samples = samples
        self.subjects = subjects
        self.subscriptions = subscriptions
        self.alerts = alerts
        self.metric_configs = list(metric_configs if metric_configs is not None else DEFAULT_METRIC_CONFIGS)

    async def detect_anomalies(
        self,
        reference_date: date | None = None,
        now: datetime | None = None,
    ) -> AnomalyReport:
        now = now or datetime.now(timezone.utc)
        reference_date = reference_date or now.date()
        found = await detect(self.samples, self.metric_configs, reference_date, now)
        created = await self.alerts.record(found)
        log.info(
            "Anomaly sweep for %s: %d anomalous, %d new alert(s)",
            reference_date, len(found), len(created),
        )
        return AnomalyReport(reference_date=reference_date, alerts=tuple(found), created=tuple(created))

    async def evaluate_rules(self, snapshot: MetricsSnapshot, now: datetime | None = None) -> List[Alert]:
        return await self.alerts.evaluate_rules(snapshot, now)

    async def forecast_usage(
        self,
        metric: UsageMetric,
        period: ForecastPeriod,
        now: datetime | None = None,
    ) -> ForecastResult:
        return await forecast_usage(self.samples, metric, period, now)

    async def forecast_revenue(self, period: ForecastPeriod, now: datetime | None = None) -> RevenueForecast:
        return await forecast_revenue(self.subscriptions, period, now)

    async def predict_churn(self, subject_id: str, now: datetime | None = None) -> ChurnPrediction:
        return await predict_churn(self.subjects, subject_id, now)

    async def predict_churn_batch(
        self,
        subject_ids: Sequence[str],
        limit: int | None = None,
        now: datetime | None = None,
    ) -> List[ChurnPrediction]:
        return await predict_churn_batch(self.subjects, subject_ids, limit, now)

    async def acknowledge_alert(self, alert_id: str, actor_id: str) -> bool:
        return await self.alerts.acknowledge(alert_id, actor_id)

    async def resolve_alert(self, alert_id: str, actor_id: str) -> bool:
        return await self.alerts.resolve(alert_id, actor_id)

    async def active_alerts(self, limit: int | None = None) -> List[Alert]:
        return await self.alerts.list_active(limit)
