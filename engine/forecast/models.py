from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from engine.enums import ForecastPeriod, Trend


@dataclass(frozen=True)
class ForecastResult:
    metric: str
    period: ForecastPeriod
    forecasted_value: float
    confidence_interval: Tuple[float, float]
    trend: Trend
    growth_rate: float


@dataclass(frozen=True)
class RevenueFactors:
    new_accounts: int
    churn_rate: float
    expansion_rate: float = 0.0


@dataclass(frozen=True)
class RevenueForecast(ForecastResult):
    current_mrr: float = 0.0
    forecasted_arr: float = 0.0
    factors: RevenueFactors = field(default_factory=lambda: RevenueFactors(new_accounts=0, churn_rate=0.0))
