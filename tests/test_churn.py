"""
Tests for churn risk factors, the risk cap, the predicted churn date and batch ranking.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import timedelta

import pytest

from config import settings
from conftest import NOW, FakeSubjects
from datasources.base import ActivityWeek
from datasources.exceptions import DataSourceUnavailable, ResourceNotFound
from datasources.fallback import FallbackSubjectProvider
from engine.churn import predict_churn, predict_churn_batch, score
from engine.churn.scoring import (
    activity_drop_score,
    error_frequency_score,
    feature_usage_score,
    payment_issues_score,
    sentiment_score,
    split_activity,
)
from engine.constants import RECOMMENDATIONS
from engine.errors import SubjectNotFound


def _week(days_ago, total):
    return ActivityWeek(week_start=NOW - timedelta(days=days_ago), logins=total)


@pytest.mark.parametrize(
    "recent, prior, expected",
    [(0, 0, 0.0), (0, 10, 30.0), (5, 10, 15.0), (20, 10, 0.0), (10, 0, 0.0)],
)
def test_activity_drop_score(recent, prior, expected):
    assert activity_drop_score(recent, prior) == pytest.approx(expected)


def test_split_activity_windows():
    weeks = [
        _week(7, 4),
        ActivityWeek(week_start=NOW - timedelta(days=14), logins=1, content_views=2, content_created=3),
        _week(40, 10),
        _week(70, 99),
    ]
    assert split_activity(weeks, NOW) == (10, 10)


def test_factor_caps_hold_for_extreme_inputs():
    assert feature_usage_score(0) == 20.0
    assert feature_usage_score(100) == pytest.approx(10.0)
    assert feature_usage_score(10_000) == 0.0
    assert sentiment_score([]) == 7.5
    assert sentiment_score([-1.0]) == pytest.approx(15.0)
    assert sentiment_score([1.0]) == 0.0
    assert sentiment_score([-50.0]) == 15.0
    assert error_frequency_score(3) == pytest.approx(6.0)
    assert error_frequency_score(1_000) == 10.0
    assert payment_issues_score("free") == 0.0
    assert payment_issues_score(None) == 0.0
    assert payment_issues_score("Pro") == 5.0


def test_risk_capped_at_hundred(monkeypatch):
    monkeypatch.setattr(settings, "churn_payment_issues_paid_plan", 1_000.0)
    p = score("s1", "pro", [_week(40, 100)], 0, [-1.0], 500, NOW)

    assert p.factors.payment_issues == 25.0
    assert p.risk == 100.0
    assert p.predicted_churn_date == NOW
    assert RECOMMENDATIONS["high_risk"] in p.recommendations


def test_healthy_subject_has_no_risk_or_date():
    p = score("s1", "free", [_week(7, 10), _week(40, 10)], 500, [1.0], 0, NOW)
    assert p.risk == 0.0
    assert p.predicted_churn_date is None
    assert p.recommendations == ()


def test_predicted_date_only_above_seventy():
    # 30 activity + 5 paid plan + 20 unused features + 15 negative sentiment
    at_seventy = score("s1", "pro", [_week(40, 10)], 0, [-1.0], 0, NOW)
    assert at_seventy.risk == pytest.approx(70.0)
    assert at_seventy.predicted_churn_date is None

    above = score("s1", "pro", [_week(40, 10)], 0, [-1.0], 1, NOW)
    assert above.risk == pytest.approx(72.0)
    assert above.predicted_churn_date == NOW + timedelta(days=28)


def test_recommendations_are_additive():
    p = score("s1", "pro", [_week(40, 10)], 0, [-1.0], 4, NOW)
    assert p.risk == pytest.approx(78.0)
    assert list(p.recommendations) == [
        RECOMMENDATIONS["activity_drop"],
        RECOMMENDATIONS["feature_usage"],
        RECOMMENDATIONS["error_frequency"],
    ]


def test_risk_always_in_range():
    for events in (0, 50, 10_000):
        for errors in (0, 3, 10_000):
            for sentiments in ([], [-1.0], [1.0], [-100.0]):
                p = score("s", "team", [_week(3, 1), _week(45, 1000)], events, sentiments, errors, NOW)
                assert 0.0 <= p.risk <= 100.0


@pytest.mark.asyncio
async def test_predict_churn_unknown_subject_raises():
    with pytest.raises(SubjectNotFound) as err:
        await predict_churn(FakeSubjects(), "ghost", NOW)
    assert err.value.subject_id == "ghost"


@pytest.mark.asyncio
async def test_predict_churn_reads_provider():
    subjects = FakeSubjects()
    subjects.plans["u1"] = "pro"
    subjects.activity["u1"] = [_week(40, 10)]
    subjects.sentiments["u1"] = [-1.0]
    subjects.errors["u1"] = 1

    p = await predict_churn(subjects, "u1", NOW)

    assert p.subject_id == "u1"
    assert p.risk == pytest.approx(72.0)


@pytest.mark.asyncio
async def test_batch_skips_failures_and_ranks_by_risk():
    subjects = FakeSubjects()
    subjects.plans.update({"low": "free", "high": "pro", "mid": "pro", "broken": "pro"})
    subjects.events["low"] = 500
    subjects.sentiments["low"] = [1.0]
    subjects.activity["high"] = [_week(40, 10)]
    subjects.sentiments["high"] = [-1.0]
    subjects.events["mid"] = 100
    subjects.broken.add("broken")

    ranked = await predict_churn_batch(subjects, ["low", "ghost", "mid", "broken", "high"], now=NOW)
    assert [p.subject_id for p in ranked] == ["high", "mid", "low"]

    top = await predict_churn_batch(subjects, ["low", "mid", "high"], limit=1, now=NOW)
    assert [p.subject_id for p in top] == ["high"]


class DownConnector:
    base_url = "http://analytics"

    def __init__(self, error):
        self.error = error

    async def subject_profile(self, subject_id):
        raise self.error


@pytest.mark.asyncio
async def test_unreachable_analytics_is_not_reported_as_unknown_subject():
    subjects = FallbackSubjectProvider(DownConnector(DataSourceUnavailable("analytics down")))

    with pytest.raises(DataSourceUnavailable):
        await predict_churn(subjects, "existing-user", NOW)


@pytest.mark.asyncio
async def test_missing_profile_is_unknown_subject():
    subjects = FallbackSubjectProvider(DownConnector(ResourceNotFound("no profile")))

    with pytest.raises(SubjectNotFound):
        await predict_churn(subjects, "ghost", NOW)
