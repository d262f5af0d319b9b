"""
Forecasting logic for usage and revenue metrics, built from least-squares linear regression and exponential smoothing, returning point forecasts with fixed confidence bands and a trend label.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""


from engine.forecast.models import ForecastResult, RevenueFactors, RevenueForecast
from engine.forecast.smoothing import exponential_smoothing, linear_regression
from engine.forecast.usage import forecast_usage
from engine.forecast.revenue import forecast_revenue

__all__ = [
    "ForecastResult",
    "RevenueFactors",
    "RevenueForecast",
    "exponential_smoothing",
    "linear_regression",
    "forecast_usage",
    "forecast_revenue",
]
