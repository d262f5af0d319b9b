"""
Enumerations for Severity, Trend, rule metrics, comparison operators and forecast inputs

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    warning = "warning"
    critical = "critical"


class Trend(str, Enum):
    increasing = "increasing"
    stable = "stable"
    decreasing = "decreasing"

    @classmethod
    def from_growth(cls, growth_pct: float, threshold_pct: float) -> Trend:
        if growth_pct > threshold_pct:
            return cls.increasing
        if growth_pct < -threshold_pct:
            return cls.decreasing
        return cls.stable


class RuleMetric(str, Enum):
    error_rate = "error_rate"
    churn_risk = "churn_risk"
    token_usage = "token_usage"
    job_failure_rate = "job_failure_rate"
    active_users = "active_users"
    custom = "custom"

    @property
    def label(self) -> str:
        if self is RuleMetric.custom:
            return "Custom Metric"
        return self.value.replace("_", " ").title()


class Operator(str, Enum):
    gt = "gt"
    gte = "gte"
    lt = "lt"
    lte = "lte"
    eq = "eq"

    def compare(self, value: float, threshold: float) -> bool:
        if self is Operator.gt:
            return value > threshold
        if self is Operator.gte:
            return value >= threshold
        if self is Operator.lt:
            return value < threshold
        if self is Operator.lte:
            return value <= threshold
        # exact comparison, no tolerance
        return value == threshold


class Channel(str, Enum):
    email = "email"
    slack = "slack"
    in_app = "in_app"


class UsageMetric(str, Enum):
    tokens = "tokens"
    content_units = "content_units"
    new_accounts = "new_accounts"


class ForecastPeriod(str, Enum):
    d30 = "30d"
    d60 = "60d"
    d90 = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])
