"""
Churn risk scoring from capped activity, billing, feature usage, sentiment and error factors.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.churn.scoring import ChurnFactors, ChurnPrediction, predict_churn, predict_churn_batch, score

__all__ = ["ChurnFactors", "ChurnPrediction", "predict_churn", "predict_churn_batch", "score"]
