"""
Constants and configuration for Pulsecheck.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import os
from typing import Dict, Optional, Tuple

from pydantic_settings import BaseSettings


REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
# closed days never change, so cached samples can live for a while
SAMPLE_TTL: int = int(os.getenv("SAMPLE_TTL", "604800"))

PULSECHECK_DATABASE_URL = os.getenv("PULSECHECK_DATABASE_URL", "sqlite:///./pulsecheck.db")
PULSECHECK_ANALYTICS_URL = os.getenv("PULSECHECK_ANALYTICS_URL", "http://analytics:8080").rstrip("/")
PULSECHECK_ANALYTICS_TOKEN = os.getenv("PULSECHECK_ANALYTICS_TOKEN", "")
PULSECHECK_CONNECTOR_TIMEOUT = int(os.getenv("PULSECHECK_CONNECTOR_TIMEOUT", "30"))

# monthly recurring revenue per plan tier, USD
PLAN_PRICES: Dict[str, float] = {
    "free": 0.0,
    "pro": 29.0,
    "team": 79.0,
    "enterprise": 249.0,
}

HEALTH_PATH = "/health"


class Settings(BaseSettings):
    database_url: Optional[str] = PULSECHECK_DATABASE_URL
    analytics_url: str = PULSECHECK_ANALYTICS_URL
    analytics_token: str = PULSECHECK_ANALYTICS_TOKEN
    connector_timeout: int = PULSECHECK_CONNECTOR_TIMEOUT

    # fan-out bound for provider queries issued by a single sweep
    max_parallel_queries: int = 8

    # moving window statistics
    anomaly_window_days: int = 7
    # a deviation this many times its threshold is critical
    anomaly_critical_multiplier: float = 1.5

    # forecasting
    forecast_smoothing_alpha: float = 0.3
    forecast_usage_weeks: int = 12
    forecast_usage_tail_weeks: int = 4
    forecast_usage_band: float = 0.15
    forecast_trend_threshold_pct: float = 5.0
    forecast_revenue_monthly_growth: float = 0.05
    forecast_revenue_band: float = 0.10
    forecast_revenue_trend_threshold_pct: float = 2.0
    forecast_revenue_lookback_days: int = 30

    # churn risk factor caps
    churn_lookback_days: int = 30
    churn_activity_drop_max: float = 30.0
    churn_payment_issues_max: float = 25.0
    churn_payment_issues_paid_plan: float = 5.0
    churn_feature_usage_max: float = 20.0
    churn_feature_usage_events_per_point: float = 10.0
    churn_sentiment_max: float = 15.0
    churn_sentiment_neutral: float = 7.5
    churn_error_frequency_max: float = 10.0
    churn_error_points: float = 2.0
    churn_risk_max: float = 100.0
    churn_predicted_date_cutoff: float = 70.0

    # recommendation cutoffs, evaluated independently
    churn_recommend_activity_drop: float = 15.0
    churn_recommend_feature_usage: float = 10.0
    churn_recommend_error_frequency: float = 5.0
    churn_recommend_high_risk: float = 80.0

    plan_prices: Dict[str, float] = PLAN_PRICES
    free_plans: Tuple[str, ...] = ("free",)

    # alert lifecycle
    alerts_list_limit: int = 50
    alert_persist_attempts: int = 3
    alert_persist_delay: float = 0.2
    alert_persist_backoff: float = 2.0
    alert_persist_max_delay: float = 2.0

    store_redis_retry_cooldown_seconds: float = 10.0
    store_fallback_max_items: int = 10_000

    model_config = {
        "env_prefix": "PULSECHECK_",
        "extra": "ignore",
    }


settings = Settings()
