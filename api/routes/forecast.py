"""
Forecast routes for usage and revenue projections.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from fastapi import APIRouter, Query

from api.responses import ForecastView, RevenueForecastView
from api.routes.common import coerce_query_value, get_engine
from api.routes.exception import handle_exceptions
from engine.enums import ForecastPeriod, UsageMetric

router = APIRouter(tags=["Forecast"])


@router.get("/forecast/usage", response_model=ForecastView, summary="Usage forecast from weekly history")
@handle_exceptions
async def usage_forecast(
    metric: UsageMetric = Query(default=UsageMetric.tokens),
    period: ForecastPeriod = Query(default=ForecastPeriod.d30),
) -> ForecastView:
    metric = coerce_query_value(metric, UsageMetric)
    period = coerce_query_value(period, ForecastPeriod)
    return ForecastView.from_result(await get_engine().forecast_usage(metric, period))


@router.get("/forecast/revenue", response_model=RevenueForecastView, summary="Revenue forecast from active subscriptions")
@handle_exceptions
async def revenue_forecast(
    period: ForecastPeriod = Query(default=ForecastPeriod.d30),
) -> RevenueForecastView:
    period = coerce_query_value(period, ForecastPeriod)
    return RevenueForecastView.from_revenue(await get_engine().forecast_revenue(period))
