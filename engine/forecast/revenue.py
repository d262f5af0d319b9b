"""
Revenue forecasting from the current recurring revenue of active subscriptions.

Growth is an assumed fixed monthly rate compounded over the period rather than
one fitted from revenue history, and the confidence band is a fixed
percentage. Both are approximations and not calibrated intervals.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable

from config import settings
from datasources.base import SubscriptionProvider
from engine.constants import REVENUE_METRIC
from engine.enums import ForecastPeriod, Trend
from engine.forecast.models import RevenueFactors, RevenueForecast

log = logging.getLogger(__name__)


def current_mrr(plans: Iterable[str]) -> float:
    prices = settings.plan_prices
    total = 0.0
    for plan in plans:
        price = prices.get(str(plan or "").lower())
        if price is None:
            log.debug("no price configured for plan %r", plan)
            continue
        total += float(price)
    return total


async def forecast_revenue(
    provider: SubscriptionProvider,
    period: ForecastPeriod,
    now: datetime | None = None,
) -> RevenueForecast:
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=settings.forecast_revenue_lookback_days)

    plans, canceled, new_accounts = await asyncio.gather(
        provider.active_plans(),
        provider.count_canceled_since(since),
        provider.count_new_accounts_since(since),
    )

    mrr = current_mrr(plans)
    growth = settings.forecast_revenue_monthly_growth
    forecasted = mrr * (1 + growth) ** (period.days / 30.0)
    band = settings.forecast_revenue_band
    churn_rate = canceled / len(plans) * 100.0 if plans else 0.0

    return RevenueForecast(
        metric=REVENUE_METRIC,
        period=period,
        forecasted_value=float(round(forecasted)),
        confidence_interval=(
            float(round(forecasted * (1 - band))),
            float(round(forecasted * (1 + band))),
        ),
        trend=Trend.from_growth(growth * 100.0, settings.forecast_revenue_trend_threshold_pct),
        growth_rate=round(growth * 100.0, 2),
        current_mrr=round(mrr, 2),
        forecasted_arr=float(round(forecasted * 12)),
        factors=RevenueFactors(
            new_accounts=int(new_accounts),
            churn_rate=round(churn_rate, 2),
        ),
    )
