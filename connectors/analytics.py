# connectors/analytics.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from config import HEALTH_PATH
from datasources.base import ActivityWeek
from datasources.helpers import fetch_json, parse_timestamp


def _iso(ts: datetime) -> str:
    return ts.isoformat()


class AnalyticsConnector:
    """HTTP client for the product analytics service that owns usage, subject and billing records."""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        token: str = "",
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = str(base_url or "").rstrip("/")
        self.timeout = timeout
        self.token = token
        self.headers = headers or {}

    @property
    def health_url(self) -> str:
        return f"{self.base_url}{HEALTH_PATH}"

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return dict(self.headers)
        return {**self.headers, "Authorization": f"Bearer {self.token}"}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await fetch_json(
            f"{self.base_url}{path}",
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
            invalid_msg="Analytics query failed",
            timeout_msg="Analytics query timed out",
            unavailable_msg="Cannot reach analytics service at",
        )

    async def metric_value(self, metric: str, start: datetime, end: datetime) -> float:
        body = await self._get(f"/v1/metrics/{metric}/value", {"start": _iso(start), "end": _iso(end)})
        return float(body.get("value") or 0.0)

    async def metric_daily_series(self, metric: str) -> List[Dict[str, Any]]:
        body = await self._get(f"/v1/metrics/{metric}/daily")
        return list(body.get("points") or [])

    async def subject_profile(self, subject_id: str) -> Dict[str, Any]:
        return await self._get(f"/v1/subjects/{subject_id}")

    async def subject_weekly_activity(self, subject_id: str) -> List[ActivityWeek]:
        body = await self._get(f"/v1/subjects/{subject_id}/weekly-activity")
        weeks: List[ActivityWeek] = []
        for row in body.get("weeks") or []:
            start = parse_timestamp(row.get("week_start"))
            if start is None:
                continue
            weeks.append(ActivityWeek(
                week_start=start,
                logins=int(row.get("login") or 0),
                content_views=int(row.get("content_view") or 0),
                content_created=int(row.get("content_create") or 0),
            ))
        return weeks

    async def count_subject_events(self, subject_id: str, since: datetime) -> int:
        body = await self._get(f"/v1/subjects/{subject_id}/events", {"since": _iso(since)})
        return int(body.get("count") or 0)

    async def subject_events(self, subject_id: str) -> List[Dict[str, Any]]:
        body = await self._get(f"/v1/subjects/{subject_id}/events")
        return list(body.get("events") or [])

    async def subject_sentiment(self, subject_id: str, since: datetime) -> List[float]:
        body = await self._get(f"/v1/subjects/{subject_id}/sentiment", {"since": _iso(since)})
        return [float(s) for s in body.get("scores") or []]

    async def count_support_errors(self, subject_id: str, since: datetime) -> int:
        body = await self._get(f"/v1/subjects/{subject_id}/support-errors", {"since": _iso(since)})
        return int(body.get("count") or 0)

    async def support_errors(self, subject_id: str) -> List[Dict[str, Any]]:
        body = await self._get(f"/v1/subjects/{subject_id}/support-errors")
        return list(body.get("errors") or [])

    async def subscriptions(
        self,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {}
        if status is not None:
            params["status"] = status
        if since is not None:
            params["since"] = _iso(since)
        body = await self._get("/v1/subscriptions", params or None)
        return list(body.get("subscriptions") or [])

    async def count_accounts_since(self, since: datetime) -> int:
        body = await self._get("/v1/accounts", {"created_since": _iso(since)})
        return int(body.get("count") or 0)

    async def accounts(self) -> List[Dict[str, Any]]:
        body = await self._get("/v1/accounts")
        return list(body.get("accounts") or [])

    async def aclose(self) -> None:
        return None
