"""
Numerical primitives for forecasting: closed-form least-squares linear regression and single exponential smoothing.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from config import settings


def linear_regression(points: Sequence[Tuple[float, float]]) -> Tuple[float, float]:
    """Return ``(slope, intercept)`` of the least-squares line through ``points``.

    When every x is equal the slope is undefined; the fit degrades to a flat
    line through the mean of y.
    """
    n = len(points)
    if n == 0:
        return 0.0, 0.0

    arr = np.array(points, dtype=float)
    x, y = arr[:, 0], arr[:, 1]
    sum_x, sum_y = x.sum(), y.sum()
    denom = n * float(np.dot(x, x)) - sum_x * sum_x
    if denom == 0 or np.all(x == x[0]):
        return 0.0, float(y.mean())

    slope = (n * float(np.dot(x, y)) - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def exponential_smoothing(values: Sequence[float], alpha: float | None = None) -> List[float]:
    if alpha is None:
        alpha = settings.forecast_smoothing_alpha
    if len(values) == 0:
        return []
    result = np.zeros(len(values))
    result[0] = values[0]
    for i in range(1, len(values)):
        result[i] = alpha * values[i] + (1 - alpha) * result[i - 1]
    return [float(v) for v in result]
