"""
Alert records and threshold rule evaluation.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.alerts.models import Alert, AlertRule, MetricsSnapshot, RuleEvaluation
from engine.alerts.rules import build_alert, evaluate

__all__ = ["Alert", "AlertRule", "MetricsSnapshot", "RuleEvaluation", "build_alert", "evaluate"]
