"""
Daily metric anomaly detection against trailing moving statistics, classifying deviations by percent and by standard deviations into warning and critical alerts.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.anomaly.detection import MetricConfig, Deviation, classify, detect, deviation, evaluate_metric

__all__ = ["MetricConfig", "Deviation", "classify", "detect", "deviation", "evaluate_metric"]
