"""
Alert routes: rule evaluation against a live snapshot, active alert listing, acknowledge and resolve.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from api.requests import AlertActionRequest, SnapshotRequest
from api.responses import AlertActionResult, AlertView, RuleEvaluationView
from api.routes.common import coerce_query_value, get_engine
from api.routes.exception import handle_exceptions

router = APIRouter(tags=["Alerts"])


@router.post("/alerts/evaluate", response_model=RuleEvaluationView, summary="Evaluate enabled rules against a snapshot")
@handle_exceptions
async def evaluate_rules(req: SnapshotRequest) -> RuleEvaluationView:
    created = await get_engine().evaluate_rules(req.to_snapshot())
    return RuleEvaluationView(created=[AlertView.from_alert(a) for a in created], count=len(created))


@router.get("/alerts", response_model=List[AlertView], summary="Unresolved alerts, newest first")
@handle_exceptions
async def list_alerts(limit: Optional[int] = Query(default=None, ge=1, le=500)) -> List[AlertView]:
    limit = coerce_query_value(limit, int)
    return [AlertView.from_alert(a) for a in await get_engine().active_alerts(limit)]


@router.post("/alerts/{alert_id}/acknowledge", response_model=AlertActionResult)
@handle_exceptions
async def acknowledge_alert(alert_id: str, req: AlertActionRequest) -> AlertActionResult:
    if not await get_engine().acknowledge_alert(alert_id, req.actor_id):
        raise HTTPException(status_code=404, detail=f"Alert not found: {alert_id}")
    return AlertActionResult(alert_id=alert_id, ok=True)


@router.post("/alerts/{alert_id}/resolve", response_model=AlertActionResult)
@handle_exceptions
async def resolve_alert(alert_id: str, req: AlertActionRequest) -> AlertActionResult:
    if not await get_engine().resolve_alert(alert_id, req.actor_id):
        raise HTTPException(status_code=404, detail=f"Alert not found: {alert_id}")
    return AlertActionResult(alert_id=alert_id, ok=True)
