"""
Trailing-window baseline statistics (mean, population standard deviation) for daily metric values, the reference point the anomaly detector measures deviations from.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from engine.baseline.compute import MovingWindowStats, compute, day_bounds, fetch_daily_values, moving_stats

__all__ = ["MovingWindowStats", "compute", "day_bounds", "fetch_daily_values", "moving_stats"]
