"""
Test Suite for Helper Functions and the analytics connector

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from datetime import date, datetime, timezone

import pytest
import httpx

import connectors.analytics as analytics
from connectors.analytics import AnalyticsConnector
from datasources.helpers import fetch_json, parse_timestamp
from datasources.exceptions import DataSourceUnavailable, InvalidQuery, QueryTimeout, ResourceNotFound


class DummyResponse:
    def __init__(self, status_code=200, text="", json_data=None):
        self.status_code = status_code
        self.text = text
        self._json = json_data or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError("err", request=None, response=self)

    def json(self):
        return self._json


class DummyClient:
    def __init__(self, resp: DummyResponse):
        self.resp = resp

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url, params=None, headers=None):
        return self.resp


@pytest.mark.asyncio
async def test_fetch_json_success(monkeypatch):
    resp = DummyResponse(status_code=200, json_data={"foo": "bar"})
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: DummyClient(resp))
    got = await fetch_json("url", params={"a": 1}, headers={})
    assert got == {"foo": "bar"}

@pytest.mark.asyncio
async def test_fetch_json_not_found(monkeypatch):
    resp = DummyResponse(status_code=404, text="not found")
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: DummyClient(resp))
    with pytest.raises(ResourceNotFound):
        await fetch_json("url")

@pytest.mark.asyncio
async def test_fetch_json_http_error(monkeypatch):
    resp = DummyResponse(status_code=400, text="missing index")
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: DummyClient(resp))
    with pytest.raises(InvalidQuery) as err:
        await fetch_json("url", invalid_msg="Analytics query failed")
    assert "[400]" in str(err.value)

@pytest.mark.asyncio
async def test_fetch_json_timeout(monkeypatch):
    async def get(*args, **kwargs):
        raise httpx.TimeoutException("timeout")
    client = DummyClient(DummyResponse())
    client.get = get
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)
    with pytest.raises(QueryTimeout):
        await fetch_json("url")

@pytest.mark.asyncio
async def test_fetch_json_unreachable(monkeypatch):
    async def get(*args, **kwargs):
        raise httpx.ConnectError("refused")
    client = DummyClient(DummyResponse())
    client.get = get
    monkeypatch.setattr(httpx, "AsyncClient", lambda timeout: client)
    with pytest.raises(DataSourceUnavailable):
        await fetch_json("http://analytics/v1")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2026-03-10T12:00:00Z", datetime(2026, 3, 10, 12, tzinfo=timezone.utc)),
        ("2026-03-10", datetime(2026, 3, 10, tzinfo=timezone.utc)),
        (0, datetime(1970, 1, 1, tzinfo=timezone.utc)),
        (date(2026, 1, 2), datetime(2026, 1, 2, tzinfo=timezone.utc)),
        (datetime(2026, 1, 2, 3), datetime(2026, 1, 2, 3, tzinfo=timezone.utc)),
        (None, None),
        ("", None),
        ("yesterday", None),
    ],
)
def test_parse_timestamp(raw, expected):
    assert parse_timestamp(raw) == expected


class Recorder:
    def __init__(self, body):
        self.body = body
        self.calls = []

    async def __call__(self, url, params=None, headers=None, **kwargs):
        self.calls.append({"url": url, "params": params, "headers": headers, **kwargs})
        return self.body


@pytest.mark.asyncio
async def test_connector_metric_value_sends_interval_and_token(monkeypatch):
    rec = Recorder({"value": "12.5"})
    monkeypatch.setattr(analytics, "fetch_json", rec)
    conn = AnalyticsConnector("http://analytics/", timeout=5, token="secret")
    start = datetime(2026, 3, 1, tzinfo=timezone.utc)

    value = await conn.metric_value("daily_token_cost", start, start.replace(day=2))

    assert value == 12.5
    call = rec.calls[0]
    assert call["url"] == "http://analytics/v1/metrics/daily_token_cost/value"
    assert call["params"] == {"start": "2026-03-01T00:00:00+00:00", "end": "2026-03-02T00:00:00+00:00"}
    assert call["headers"]["Authorization"] == "Bearer secret"
    assert call["timeout"] == 5


@pytest.mark.asyncio
async def test_connector_parses_weekly_activity(monkeypatch):
    rec = Recorder({"weeks": [
        {"week_start": "2026-03-02", "login": 3, "content_view": 4, "content_create": 1},
        {"week_start": None, "login": 50},
    ]})
    monkeypatch.setattr(analytics, "fetch_json", rec)

    weeks = await AnalyticsConnector("http://analytics").subject_weekly_activity("u1")

    assert len(weeks) == 1
    assert weeks[0].total == 8
    assert weeks[0].week_start == datetime(2026, 3, 2, tzinfo=timezone.utc)
    assert "Authorization" not in rec.calls[0]["headers"]


@pytest.mark.asyncio
async def test_connector_subscriptions_filters(monkeypatch):
    rec = Recorder({"subscriptions": [{"plan": "pro", "status": "active"}]})
    monkeypatch.setattr(analytics, "fetch_json", rec)
    conn = AnalyticsConnector("http://analytics")

    assert await conn.subscriptions(status="active") == [{"plan": "pro", "status": "active"}]
    await conn.subscriptions()

    assert rec.calls[0]["params"] == {"status": "active"}
    assert rec.calls[1]["params"] is None
    assert conn.health_url == "http://analytics/health"
