"""
Threshold rule evaluation against a live metrics snapshot.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import uuid
from datetime import datetime

from engine.alerts.models import Alert, AlertRule, MetricsSnapshot, RuleEvaluation


def evaluate(rule: AlertRule, snapshot: MetricsSnapshot) -> RuleEvaluation:
    value = snapshot.value_for(rule.metric)
    triggered = rule.operator.compare(value, rule.threshold)
    message = (
        f"{rule.metric.label} is {value:.2f} (threshold: {rule.operator.value} {rule.threshold:g})"
        if triggered
        else ""
    )
    return RuleEvaluation(triggered=triggered, value=value, message=message)


def build_alert(rule: AlertRule, evaluation: RuleEvaluation, now: datetime) -> Alert:
    return Alert(
        id=uuid.uuid4().hex,
        source=rule.id,
        severity=rule.effective_severity,
        current_value=evaluation.value,
        expected_value=rule.threshold,
        deviation=round(abs(evaluation.value - rule.threshold), 4),
        message=evaluation.message,
        triggered_at=now,
        metric=rule.metric.value,
        rule_name=rule.name,
        channels=rule.channels,
    )
