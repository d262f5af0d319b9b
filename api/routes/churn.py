"""
Churn risk routes for single subjects and ranked batches.

Copyright (c) 2026 Stefan Kumarasinghe
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from api.requests import ChurnBatchRequest
from api.responses import ChurnPredictionView
from api.routes.common import get_engine
from api.routes.exception import handle_exceptions

router = APIRouter(tags=["Churn"])


@router.get("/churn/{subject_id}", response_model=ChurnPredictionView)
@handle_exceptions
async def churn_for_subject(subject_id: str) -> ChurnPredictionView:
    return ChurnPredictionView.from_prediction(await get_engine().predict_churn(subject_id))


@router.post("/churn/batch", response_model=List[ChurnPredictionView], summary="Highest churn risks first")
@handle_exceptions
async def churn_batch(req: ChurnBatchRequest) -> List[ChurnPredictionView]:
    predictions = await get_engine().predict_churn_batch(req.subject_ids, req.limit)
    return [ChurnPredictionView.from_prediction(p) for p in predictions]
