"""
Anomaly sweep route over the monitored daily metrics.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter

from api.requests import DetectRequest
from api.responses import AlertView, AnomalyReportView
from api.routes.common import get_engine
from api.routes.exception import handle_exceptions

router = APIRouter(tags=["Anomalies"])


@router.post("/anomalies/detect", response_model=AnomalyReportView, summary="Sweep monitored metrics for anomalies")
@handle_exceptions
async def detect_anomalies(req: Optional[DetectRequest] = None) -> AnomalyReportView:
    reference_date = req.reference_date if req is not None else None
    report = await get_engine().detect_anomalies(reference_date)
    return AnomalyReportView(
        reference_date=report.reference_date,
        alerts=[AlertView.from_alert(a) for a in report.alerts],
        count=report.count,
        critical_count=report.critical_count,
        warning_count=report.warning_count,
        created_count=len(report.created),
    )
