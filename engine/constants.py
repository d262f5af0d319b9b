from __future__ import annotations

from engine.anomaly.detection import MetricConfig

# metrics swept by the daily anomaly detector
DEFAULT_METRIC_CONFIGS: list[MetricConfig] = [
    MetricConfig("file_conversion_success_rate", percent_threshold=30.0, std_dev_threshold=2.0),
    MetricConfig("export_success_rate", percent_threshold=30.0, std_dev_threshold=2.0),
    # generation time varies more; require two consecutive anomalous days
    MetricConfig(
        "p95_generation_time",
        percent_threshold=50.0,
        std_dev_threshold=2.0,
        min_consecutive_intervals=2,
    ),
    MetricConfig("daily_token_cost", percent_threshold=50.0, std_dev_threshold=2.0),
    MetricConfig("daily_content_created", percent_threshold=40.0, std_dev_threshold=2.0),
]

# metric identifiers the provider understands for the usage forecast
USAGE_METRIC_SOURCES: dict[str, str] = {
    "tokens": "weekly_tokens",
    "content_units": "weekly_content_created",
    "new_accounts": "weekly_new_accounts",
}

REVENUE_METRIC = "mrr"

RECOMMENDATIONS: dict[str, str] = {
    "activity_drop": "User activity has dropped significantly - send re-engagement outreach",
    "feature_usage": "User is not using key features - provide onboarding support",
    "error_frequency": "User is experiencing frequent errors - reach out with support",
    "high_risk": "High churn risk - consider offering a discount or upgrade incentive",
}
