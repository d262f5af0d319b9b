"""
Detection logic for daily metric anomalies: each monitored metric's current value is compared against its trailing 7-day moving statistics using a percent deviation and a standard-deviation distance, and anomalous metrics are classified as warning or critical.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from config import settings
from datasources.base import MetricSampleProvider
from engine.alerts.models import Alert
from engine.baseline.compute import MovingWindowStats, compute, fetch_daily_values
from engine.enums import Severity

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricConfig:
    metric: str
    percent_threshold: float
    std_dev_threshold: float
    min_consecutive_intervals: int = 1


@dataclass(frozen=True)
class Deviation:
    percent: float
    std_devs: float


def deviation(current: float, stats: MovingWindowStats) -> Deviation:
    diff = abs(current - stats.mean)
    percent = diff / stats.mean * 100.0 if stats.mean > 0 else 0.0
    std_devs = diff / stats.std_dev if stats.std_dev > 0 else 0.0
    return Deviation(percent=percent, std_devs=std_devs)


def classify(dev: Deviation, config: MetricConfig) -> Optional[Severity]:
    if dev.percent < config.percent_threshold and dev.std_devs < config.std_dev_threshold:
        return None
    k = settings.anomaly_critical_multiplier
    if dev.percent >= config.percent_threshold * k or dev.std_devs >= config.std_dev_threshold * k:
        return Severity.critical
    return Severity.warning


def alert_key(metric: str, reference_date: date) -> str:
    return f"{metric}-{reference_date.isoformat()}"


def _message(metric: str, current: float, dev: Deviation, stats: MovingWindowStats, window: int) -> str:
    direction = "higher" if current > stats.mean else "lower"
    return (
        f"{metric} is {dev.percent:.1f}% {direction} than expected from the {window}-day average "
        f"(current {current:.2f} vs expected {stats.mean:.2f})"
    )


def _windows(history: Sequence[float], window: int, runs: int) -> List[Tuple[float, MovingWindowStats]]:
    # history holds `window + runs - 1` trailing days followed by the current day;
    # the last entry is the reference day, earlier entries feed the consecutive checks
    out: List[Tuple[float, MovingWindowStats]] = []
    for k in range(runs):
        idx = len(history) - 1 - k
        out.append((history[idx], compute(history[idx - window: idx])))
    return out


async def evaluate_metric(
    provider: MetricSampleProvider,
    config: MetricConfig,
    reference_date: date,
    now: datetime | None = None,
) -> Optional[Alert]:
    if not provider.available:
        log.debug("skipping %s: provider unavailable", config.metric)
        return None

    window = settings.anomaly_window_days
    runs = max(1, int(config.min_consecutive_intervals))
    span = window + runs
    raw = await fetch_daily_values(
        provider, config.metric, reference_date - timedelta(days=span - 1), span, missing=None
    )
    if any(v is None for v in raw[-runs:]):
        log.warning("skipping %s on %s: no reading for the evaluated day(s)", config.metric, reference_date)
        return None
    # a missing trailing day still counts as 0 in the baseline
    history = [0.0 if v is None else v for v in raw]

    evaluations = _windows(history, window, runs)
    current, stats = evaluations[0]
    if not stats.has_history:
        return None

    dev = deviation(current, stats)
    severity = classify(dev, config)
    if severity is None:
        return None

    for earlier_value, earlier_stats in evaluations[1:]:
        if classify(deviation(earlier_value, earlier_stats), config) is None:
            log.debug(
                "%s anomalous on %s but not for %d consecutive days",
                config.metric, reference_date, runs,
            )
            return None

    key = alert_key(config.metric, reference_date)
    return Alert(
        id=key,
        source=key,
        severity=severity,
        current_value=current,
        expected_value=stats.mean,
        deviation=round(dev.percent, 4),
        message=_message(config.metric, current, dev, stats, window),
        triggered_at=now or datetime.now(timezone.utc),
        metric=config.metric,
    )


async def detect(
    provider: MetricSampleProvider,
    configs: Sequence[MetricConfig],
    reference_date: date,
    now: datetime | None = None,
) -> List[Alert]:
    raw = await asyncio.gather(
        *[evaluate_metric(provider, c, reference_date, now) for c in configs],
        return_exceptions=True,
    )
    alerts: List[Alert] = []
    for config, result in zip(configs, raw):
        if isinstance(result, Exception):
            log.warning("anomaly check for %s failed: %s", config.metric, result)
            continue
        if result is not None:
            alerts.append(result)
    return alerts
