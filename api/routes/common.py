"""
Shared dependencies for API route modules.

Builds the process-wide metrics engine from the configured data source and the
SQL stores, so individual route files stay thin and tests can swap the engine
with ``monkeypatch``.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Any, Optional

from datasources.data_config import DataSourceSettings
from datasources.provider import DataSourceProvider
from services.alert_service import AlertService
from services.metrics_engine import MetricsEngine
from store.alerts import SqlAlertStore
from store.rules import SqlAlertRuleSource
from store.samples import CachedSampleProvider


_provider: Optional[DataSourceProvider] = None
_engine: Optional[MetricsEngine] = None


def get_provider() -> DataSourceProvider:
    global _provider
    if _provider is None:
        _provider = DataSourceProvider(settings=DataSourceSettings())
    return _provider


def get_engine() -> MetricsEngine:
    global _engine
    if _engine is None:
        provider = get_provider()
        _engine = MetricsEngine(
            samples=CachedSampleProvider(provider.samples),
            subjects=provider.subjects,
            subscriptions=provider.subscriptions,
            alerts=AlertService(SqlAlertStore(), SqlAlertRuleSource()),
        )
    return _engine


async def close_providers() -> None:
    global _provider, _engine
    provider = _provider
    _provider = None
    _engine = None
    if provider is not None:
        await provider.aclose()


def coerce_query_value(value: Any, cast: Any) -> Any:
    # Allow direct unit-test invocation without FastAPI Query parsing.
    raw = value.default if hasattr(value, "default") else value
    return cast(raw) if raw is not None else None
