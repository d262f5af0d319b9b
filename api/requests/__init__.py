from __future__ import annotations

from datetime import date
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from engine.alerts.models import MetricsSnapshot


class DetectRequest(BaseModel):
    reference_date: Optional[date] = None


class SnapshotRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error_rate: Optional[float] = None
    churn_risk: Optional[float] = None
    token_usage: Optional[float] = None
    job_failure_rate: Optional[float] = None
    active_users: Optional[float] = None
    custom: Optional[float] = None

    def to_snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot.from_mapping(self.model_dump(exclude_none=True))


class AlertActionRequest(BaseModel):
    actor_id: str = Field(min_length=1, max_length=128)


class ChurnBatchRequest(BaseModel):
    subject_ids: List[str] = Field(min_length=1, max_length=1000)
    limit: Optional[int] = Field(default=None, ge=1, le=1000)
