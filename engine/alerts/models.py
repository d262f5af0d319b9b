"""
Alert, alert rule and metrics snapshot records shared by the rule evaluator, the lifecycle manager and the stores.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from engine.enums import Channel, Operator, RuleMetric, Severity

# legacy behaviour for rules stored before severity became a rule field
_CRITICAL_BY_DEFAULT = frozenset({RuleMetric.error_rate, RuleMetric.job_failure_rate})


@dataclass(frozen=True)
class Alert:
    id: str
    source: str
    severity: Severity
    current_value: float
    expected_value: float
    deviation: float
    message: str
    triggered_at: datetime
    metric: Optional[str] = None
    rule_name: Optional[str] = None
    channels: Tuple[Channel, ...] = ()
    acknowledged_at: Optional[datetime] = None
    acknowledged_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

    @property
    def state(self) -> str:
        if self.resolved_at is not None:
            return "resolved"
        if self.acknowledged_at is not None:
            return "acknowledged"
        return "triggered"


@dataclass(frozen=True)
class AlertRule:
    id: str
    name: str
    metric: RuleMetric
    threshold: float
    operator: Operator
    channels: Tuple[Channel, ...] = ()
    enabled: bool = True
    severity: Optional[Severity] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_severity(self) -> Severity:
        if self.severity is not None:
            return self.severity
        return Severity.critical if self.metric in _CRITICAL_BY_DEFAULT else Severity.warning


@dataclass(frozen=True)
class MetricsSnapshot:
    """Live values keyed by rule metric kind; an absent reading counts as 0."""

    error_rate: float = 0.0
    churn_risk: float = 0.0
    token_usage: float = 0.0
    job_failure_rate: float = 0.0
    active_users: float = 0.0
    custom: float = 0.0

    def value_for(self, metric: RuleMetric) -> float:
        return float(getattr(self, metric.value))

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MetricsSnapshot:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"Unknown snapshot metric(s): {', '.join(unknown)}")
        return cls(**{k: float(v) for k, v in raw.items() if v is not None})


@dataclass(frozen=True)
class RuleEvaluation:
    triggered: bool
    value: float
    message: str
