"""
Tests for daily metric anomaly detection and severity classification.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

import math
from datetime import date

import pytest

from conftest import NOW, DailySamples
from engine.anomaly import detection
from engine.anomaly.detection import MetricConfig, Deviation, classify, detect, deviation, evaluate_metric
from engine.baseline.compute import compute
from engine.enums import Severity

REF = date(2026, 3, 15)
CONFIG = MetricConfig("export_success_rate", percent_threshold=30.0, std_dev_threshold=2.0)


@pytest.mark.parametrize("v", [0.0, 1.0, 42.5, 1e6])
@pytest.mark.asyncio
async def test_constant_history_never_alerts(v):
    provider = DailySamples()
    provider.set_series(CONFIG.metric, REF, [v] * 8)

    dev = deviation(v, compute([v] * 7))
    assert dev.percent == 0.0
    assert await evaluate_metric(provider, CONFIG, REF, NOW) is None


def test_zero_mean_is_guarded():
    dev = deviation(0.0, compute([0.0] * 7))
    assert dev.percent == 0.0
    assert dev.std_devs == 0.0

    dev = deviation(5.0, compute([0.0] * 7))
    assert math.isfinite(dev.percent) and math.isfinite(dev.std_devs)
    assert dev.percent == 0.0


def test_zero_std_is_guarded():
    dev = deviation(12.0, compute([10.0] * 7))
    assert dev.percent == pytest.approx(20.0)
    assert dev.std_devs == 0.0


@pytest.mark.parametrize(
    "dev, expected",
    [
        (Deviation(20.0, 1.0), None),
        (Deviation(30.0, 0.0), Severity.warning),
        (Deviation(0.0, 2.0), Severity.warning),
        (Deviation(44.9, 2.9), Severity.warning),
        (Deviation(45.0, 0.0), Severity.critical),
        (Deviation(0.0, 3.0), Severity.critical),
    ],
)
def test_classify_thresholds(dev, expected):
    assert classify(dev, CONFIG) == expected


@pytest.mark.asyncio
async def test_spike_raises_critical_alert_with_deterministic_id():
    provider = DailySamples()
    provider.set_series(CONFIG.metric, REF, [100.0] * 7 + [200.0])

    alert = await evaluate_metric(provider, CONFIG, REF, NOW)

    assert alert is not None
    assert alert.id == alert.source == "export_success_rate-2026-03-15"
    assert alert.severity is Severity.critical
    assert alert.current_value == 200.0
    assert alert.expected_value == pytest.approx(100.0)
    assert alert.deviation == pytest.approx(100.0)
    assert alert.triggered_at == NOW
    assert "higher" in alert.message
    assert "200.00" in alert.message and "100.00" in alert.message


@pytest.mark.asyncio
async def test_drop_raises_warning_and_says_lower():
    provider = DailySamples()
    provider.set_series(CONFIG.metric, REF, [100.0] * 7 + [60.0])

    alert = await evaluate_metric(provider, CONFIG, REF, NOW)

    assert alert.severity is Severity.warning
    assert "lower" in alert.message


@pytest.mark.asyncio
async def test_unavailable_provider_skips_metric():
    provider = DailySamples(available=False)
    assert await evaluate_metric(provider, CONFIG, REF, NOW) is None
    assert provider.calls == []


@pytest.mark.asyncio
async def test_consecutive_intervals_require_every_day_anomalous():
    config = MetricConfig("p95_generation_time", 50.0, 2.0, min_consecutive_intervals=2)

    single = DailySamples()
    single.set_series(config.metric, REF, [100.0] * 8 + [200.0])
    assert await evaluate_metric(single, config, REF, NOW) is None

    both = DailySamples()
    both.set_series(config.metric, REF, [100.0] * 7 + [200.0, 200.0])
    alert = await evaluate_metric(both, config, REF, NOW)
    assert alert is not None
    assert alert.severity is Severity.critical
    assert len(both.calls) == 9


@pytest.mark.asyncio
async def test_detect_isolates_failing_metric(monkeypatch):
    provider = DailySamples()
    provider.set_series("a", REF, [10.0] * 7 + [50.0])
    provider.set_series("b", REF, [10.0] * 7 + [50.0])

    real = detection.evaluate_metric

    async def flaky(p, config, ref, now=None):
        if config.metric == "a":
            raise RuntimeError("boom")
        return await real(p, config, ref, now)

    monkeypatch.setattr(detection, "evaluate_metric", flaky)
    configs = [MetricConfig("a", 30.0, 2.0), MetricConfig("b", 30.0, 2.0)]

    alerts = await detect(provider, configs, REF, NOW)

    assert [a.metric for a in alerts] == ["b"]


@pytest.mark.asyncio
async def test_reference_day_without_reading_is_skipped():
    provider = DailySamples()
    provider.set_series(CONFIG.metric, REF, [98.0] * 8)
    provider.fail_days.add(REF)

    assert await evaluate_metric(provider, CONFIG, REF, NOW) is None
    assert await detect(provider, [CONFIG], REF, NOW) == []


@pytest.mark.asyncio
async def test_failed_history_day_still_counts_as_zero():
    provider = DailySamples()
    provider.set_series(CONFIG.metric, REF, [98.0] * 7 + [300.0])
    provider.fail_days.add(date(2026, 3, 10))

    alert = await evaluate_metric(provider, CONFIG, REF, NOW)

    assert alert is not None
    assert alert.expected_value == pytest.approx(98.0 * 6 / 7)


@pytest.mark.asyncio
async def test_consecutive_check_skips_when_an_earlier_evaluated_day_failed():
    config = MetricConfig("p95_generation_time", 50.0, 2.0, min_consecutive_intervals=2)
    provider = DailySamples()
    provider.set_series(config.metric, REF, [10.0] * 7 + [40.0, 40.0])
    provider.fail_days.add(date(2026, 3, 14))

    assert await evaluate_metric(provider, config, REF, NOW) is None
