"""
Response models for API endpoints, built from the engine's result records.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional, Tuple

import numpy as np
from pydantic import BaseModel, model_serializer

from engine.alerts.models import Alert
from engine.churn.scoring import ChurnPrediction
from engine.enums import Channel, ForecastPeriod, Severity, Trend
from engine.forecast.models import ForecastResult, RevenueForecast


def _coerce(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {k: _coerce(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_coerce(v) for v in obj]
    if isinstance(obj, tuple):
        return [_coerce(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return obj


class NpModel(BaseModel):

    @model_serializer(mode="wrap")
    def _serialize(self, handler: Any) -> Any:
        return _coerce(handler(self))


class AlertView(NpModel):

    id: str
    source: str
    state: str
    severity: Severity
    current_value: float
    expected_value: float
    deviation: float
    message: str
    triggered_at: datetime
    metric: Optional[str] = None
    rule_name: Optional[str] = None
    channels: List[Channel] = []
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    @classmethod
    def from_alert(cls, alert: Alert) -> AlertView:
        return cls(
            id=alert.id,
            source=alert.source,
            state=alert.state,
            severity=alert.severity,
            current_value=alert.current_value,
            expected_value=alert.expected_value,
            deviation=alert.deviation,
            message=alert.message,
            triggered_at=alert.triggered_at,
            metric=alert.metric,
            rule_name=alert.rule_name,
            channels=list(alert.channels),
            acknowledged_at=alert.acknowledged_at,
            acknowledged_by=alert.acknowledged_by,
            resolved_at=alert.resolved_at,
            resolved_by=alert.resolved_by,
        )


class AnomalyReportView(NpModel):

    reference_date: date
    alerts: List[AlertView]
    count: int
    critical_count: int
    warning_count: int
    created_count: int


class RuleEvaluationView(NpModel):

    created: List[AlertView]
    count: int


class AlertActionResult(NpModel):

    alert_id: str
    ok: bool


class ForecastView(NpModel):

    metric: str
    period: ForecastPeriod
    forecasted_value: float
    confidence_interval: Tuple[float, float]
    trend: Trend
    growth_rate: float

    @classmethod
    def from_result(cls, result: ForecastResult) -> ForecastView:
        return cls(
            metric=result.metric,
            period=result.period,
            forecasted_value=result.forecasted_value,
            confidence_interval=result.confidence_interval,
            trend=result.trend,
            growth_rate=result.growth_rate,
        )


class RevenueFactorsView(NpModel):

    new_accounts: int
    churn_rate: float
    expansion_rate: float


class RevenueForecastView(ForecastView):

    current_mrr: float
    forecasted_arr: float
    factors: RevenueFactorsView

    @classmethod
    def from_revenue(cls, result: RevenueForecast) -> RevenueForecastView:
        return cls(
            metric=result.metric,
            period=result.period,
            forecasted_value=result.forecasted_value,
            confidence_interval=result.confidence_interval,
            trend=result.trend,
            growth_rate=result.growth_rate,
            current_mrr=result.current_mrr,
            forecasted_arr=result.forecasted_arr,
            factors=RevenueFactorsView(
                new_accounts=result.factors.new_accounts,
                churn_rate=result.factors.churn_rate,
                expansion_rate=result.factors.expansion_rate,
            ),
        )


class ChurnFactorsView(NpModel):

    activity_drop: float
    payment_issues: float
    feature_usage: float
    sentiment_trend: float
    error_frequency: float


class ChurnPredictionView(NpModel):

    subject_id: str
    risk: float
    factors: ChurnFactorsView
    predicted_churn_date: Optional[datetime] = None
    recommendations: List[str] = []

    @classmethod
    def from_prediction(cls, p: ChurnPrediction) -> ChurnPredictionView:
        return cls(
            subject_id=p.subject_id,
            risk=p.risk,
            factors=ChurnFactorsView(
                activity_drop=p.factors.activity_drop,
                payment_issues=p.factors.payment_issues,
                feature_usage=p.factors.feature_usage,
                sentiment_trend=p.factors.sentiment_trend,
                error_frequency=p.factors.error_frequency,
            ),
            predicted_churn_date=p.predicted_churn_date,
            recommendations=list(p.recommendations),
        )
