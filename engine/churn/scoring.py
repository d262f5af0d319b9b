"""
Churn risk scoring for a single subject as the sum of five independently capped factors (activity drop, payment issues, feature usage, sentiment trend, error frequency), with a heuristic churn date for high-risk subjects and additive intervention recommendations.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from config import settings
from datasources.base import ActivityWeek, SubjectDataProvider
from engine.constants import RECOMMENDATIONS
from engine.errors import SubjectNotFound

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChurnFactors:
    activity_drop: float
    payment_issues: float
    feature_usage: float
    sentiment_trend: float
    error_frequency: float

    @property
    def total(self) -> float:
        return (
            self.activity_drop
            + self.payment_issues
            + self.feature_usage
            + self.sentiment_trend
            + self.error_frequency
        )


@dataclass(frozen=True)
class ChurnPrediction:
    subject_id: str
    risk: float
    factors: ChurnFactors
    predicted_churn_date: Optional[datetime]
    recommendations: Tuple[str, ...]


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(upper, value))


def split_activity(weeks: Sequence[ActivityWeek], now: datetime) -> Tuple[int, int]:
    lookback = timedelta(days=settings.churn_lookback_days)
    recent_cutoff = now - lookback
    prior_cutoff = now - 2 * lookback
    recent = prior = 0
    for week in weeks:
        if week.week_start >= recent_cutoff:
            recent += week.total
        elif week.week_start >= prior_cutoff:
            prior += week.total
    return recent, prior


def activity_drop_score(recent: float, prior: float) -> float:
    cap = settings.churn_activity_drop_max
    if prior <= 0:
        return 0.0
    if recent <= 0:
        return cap
    return _clamp((prior - recent) / prior * cap, cap)


def payment_issues_score(plan: Optional[str]) -> float:
    # flat indicator for paying plans until billing health is available
    if str(plan or "free").lower() in settings.free_plans:
        return 0.0
    return _clamp(settings.churn_payment_issues_paid_plan, settings.churn_payment_issues_max)


def feature_usage_score(event_count: int) -> float:
    cap = settings.churn_feature_usage_max
    return _clamp(cap - event_count / settings.churn_feature_usage_events_per_point, cap)


def sentiment_score(scores: Sequence[float]) -> float:
    cap = settings.churn_sentiment_max
    if not scores:
        return settings.churn_sentiment_neutral
    avg = sum(scores) / len(scores)
    # sentiment in [-1, 1]; -1 maps to the cap, +1 to zero
    return _clamp((1 - avg) / 2 * cap, cap)


def error_frequency_score(error_count: int) -> float:
    cap = settings.churn_error_frequency_max
    return _clamp(error_count * settings.churn_error_points, cap)


def recommendations(factors: ChurnFactors, risk: float) -> List[str]:
    out: List[str] = []
    if factors.activity_drop > settings.churn_recommend_activity_drop:
        out.append(RECOMMENDATIONS["activity_drop"])
    if factors.feature_usage > settings.churn_recommend_feature_usage:
        out.append(RECOMMENDATIONS["feature_usage"])
    if factors.error_frequency > settings.churn_recommend_error_frequency:
        out.append(RECOMMENDATIONS["error_frequency"])
    if risk > settings.churn_recommend_high_risk:
        out.append(RECOMMENDATIONS["high_risk"])
    return out


def score(
    subject_id: str,
    plan: Optional[str],
    activity: Sequence[ActivityWeek],
    event_count: int,
    sentiments: Sequence[float],
    error_count: int,
    now: datetime,
) -> ChurnPrediction:
    recent, prior = split_activity(activity, now)
    factors = ChurnFactors(
        activity_drop=round(activity_drop_score(recent, prior), 2),
        payment_issues=round(payment_issues_score(plan), 2),
        feature_usage=round(feature_usage_score(event_count), 2),
        sentiment_trend=round(sentiment_score(sentiments), 2),
        error_frequency=round(error_frequency_score(error_count), 2),
    )
    risk = round(_clamp(factors.total, settings.churn_risk_max), 2)

    predicted: Optional[datetime] = None
    if risk > settings.churn_predicted_date_cutoff:
        # heuristic: the higher the risk, the sooner the churn
        predicted = now + timedelta(days=settings.churn_risk_max - risk)

    return ChurnPrediction(
        subject_id=subject_id,
        risk=risk,
        factors=factors,
        predicted_churn_date=predicted,
        recommendations=tuple(recommendations(factors, risk)),
    )


async def predict_churn(
    provider: SubjectDataProvider,
    subject_id: str,
    now: datetime | None = None,
) -> ChurnPrediction:
    now = now or datetime.now(timezone.utc)
    plan = await provider.get_plan(subject_id)
    if plan is None:
        raise SubjectNotFound(subject_id)

    since = now - timedelta(days=settings.churn_lookback_days)
    activity, events, sentiments, errors = await asyncio.gather(
        provider.weekly_activity(subject_id),
        provider.count_events(subject_id, since),
        provider.sentiment_scores(subject_id, since),
        provider.count_support_errors(subject_id, since),
    )
    return score(subject_id, plan, activity, events, sentiments, errors, now)


async def predict_churn_batch(
    provider: SubjectDataProvider,
    subject_ids: Sequence[str],
    limit: int | None = None,
    now: datetime | None = None,
) -> List[ChurnPrediction]:
    now = now or datetime.now(timezone.utc)
    sem = asyncio.Semaphore(max(1, int(settings.max_parallel_queries)))

    async def _one(sid: str) -> ChurnPrediction:
        async with sem:
            return await predict_churn(provider, sid, now)

    raw = await asyncio.gather(*[_one(s) for s in subject_ids], return_exceptions=True)
    predictions: List[ChurnPrediction] = []
    for sid, r in zip(subject_ids, raw):
        if isinstance(r, Exception):
            log.warning("churn prediction for %s failed: %s", sid, r)
            continue
        predictions.append(r)

    predictions.sort(key=lambda p: p.risk, reverse=True)
    return predictions[:limit] if limit is not None else predictions
