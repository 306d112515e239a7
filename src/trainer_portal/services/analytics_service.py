"""Proxy to the Vercel Web Analytics API for the admin dashboard."""

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..config import Settings, get_settings
from ..exceptions import AnalyticsError, ServiceUnavailableError

logger = logging.getLogger(__name__)

VERCEL_API = "https://api.vercel.com/v1"
DEFAULT_TIMEFRAME_DAYS = 7
TOP_PAGES = 5
TOP_COUNTRIES = 4


def parse_timeframe(timeframe: str) -> int:
    """Number of days in a timeframe like "7d" or "30"; defaults to 7."""
    match = re.match(r"^\s*(\d+)", timeframe or "")
    days = int(match.group(1)) if match else 0
    return days if days > 0 else DEFAULT_TIMEFRAME_DAYS


def format_session_duration(page_views: int, visitors: int) -> str:
    """Rough session length: 2.5 s per page view per visitor, as m:ss."""
    seconds = int((page_views / visitors) * 2.5) if visitors > 0 else 0
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_bounce_rate(page_views: int, visitors: int) -> str:
    rate = (visitors / page_views) * 100 if page_views > 0 else 0.0
    return f"{rate:.1f}%"


class AnalyticsService:
    """Fetches page view and visitor aggregates from Vercel."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport

    def _require_configured(self) -> None:
        if not self.settings.analytics_configured:
            raise ServiceUnavailableError(
                "Analytics not configured. Please set VERCEL_TOKEN and VERCEL_PROJECT_ID.",
                service="vercel",
            )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.analytics_timeout_seconds,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.settings.vercel_token}",
                "Content-Type": "application/json",
            },
        )

    def _base_url(self, product: str) -> str:
        team_id = self.settings.vercel_team_id
        if team_id:
            return f"{VERCEL_API}/{product}/teams/{team_id}"
        return f"{VERCEL_API}/{product}"

    async def _fetch_event(
        self, client: httpx.AsyncClient, event: str, since_ms: int, until_ms: int
    ) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        """One aggregate query; returns (payload, error).

        Raises:
            httpx.HTTPError: If no response was received at all
        """
        params = {
            "projectId": self.settings.vercel_project_id,
            "since": since_ms,
            "until": until_ms,
            "event": event,
        }
        response = await client.get(self._base_url("analytics"), params=params)
        if response.status_code != 200:
            logger.error(f"Analytics {event} error: {response.status_code} {response.text[:200]}")
            return None, f"API Error: {response.status_code}"
        try:
            return response.json(), None
        except ValueError:
            logger.error(f"Analytics {event} returned invalid JSON")
            return None, f"Invalid response: {event}"

    async def get_summary(self, timeframe: str = "7d") -> Dict[str, Any]:
        """
        Page views, visitors and derived metrics for the timeframe.

        Page views and visitors are fetched concurrently. A failed half
        leaves its numbers at zero and is reported in ``apiError``.

        Raises:
            AnalyticsError: If neither query got an answer from Vercel
        """
        self._require_configured()

        days = parse_timeframe(timeframe)
        until_ms = int(time.time() * 1000)
        since_ms = until_ms - days * 24 * 60 * 60 * 1000

        async with self._client() as client:
            results = await asyncio.gather(
                self._fetch_event(client, "pageview", since_ms, until_ms),
                self._fetch_event(client, "visitor", since_ms, until_ms),
                return_exceptions=True,
            )

        failures = [r for r in results if isinstance(r, httpx.HTTPError)]
        if len(failures) == len(results):
            logger.error(f"Analytics requests failed: {failures[0]}")
            raise AnalyticsError() from failures[0]

        halves = []
        for event, result in zip(("pageview", "visitor"), results):
            if isinstance(result, httpx.HTTPError):
                logger.error(f"Analytics {event} request failed: {result}")
                halves.append((None, f"Request failed: {event}"))
            elif isinstance(result, BaseException):
                raise result
            else:
                halves.append(result)
        (views, views_error), (visitors_data, visitors_error) = halves

        page_views = int((views or {}).get("total") or 0)
        pages: List[Dict[str, Any]] = (views or {}).get("pages") or []
        unique_visitors = int((visitors_data or {}).get("total") or 0)
        countries: List[Dict[str, Any]] = (visitors_data or {}).get("countries") or []

        summary: Dict[str, Any] = {
            "timeframe": timeframe,
            "pageViews": page_views,
            "uniqueVisitors": unique_visitors,
            "avgSessionDuration": format_session_duration(page_views, unique_visitors),
            "bounceRate": format_bounce_rate(page_views, unique_visitors),
            "topPages": [
                {
                    "path": page.get("path") or page.get("url") or "/",
                    "views": page.get("count") or page.get("views") or 0,
                }
                for page in pages[:TOP_PAGES]
            ],
            "topCountries": [
                {
                    "country": country.get("name") or country.get("code") or "Unknown",
                    "visitors": country.get("count") or country.get("visitors") or 0,
                }
                for country in countries[:TOP_COUNTRIES]
            ],
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
        api_error = views_error or visitors_error
        if api_error:
            summary["apiError"] = api_error
        return summary

    async def get_web_vitals(self) -> Dict[str, Any]:
        """Core Web Vitals for the project.

        Raises:
            AnalyticsError: If Vercel does not answer with 200
        """
        self._require_configured()

        async with self._client() as client:
            try:
                response = await client.get(
                    self._base_url("web-vitals"),
                    params={"projectId": self.settings.vercel_project_id},
                )
            except httpx.HTTPError as e:
                logger.error(f"Web vitals request failed: {e}")
                raise AnalyticsError("Failed to fetch web vitals data") from e

        if response.status_code != 200:
            raise AnalyticsError(
                "Failed to fetch web vitals data", upstream_status=response.status_code
            )
        return {
            "vitals": response.json().get("vitals") or {},
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }


def get_analytics_service() -> AnalyticsService:
    """FastAPI dependency; settings are read per request."""
    return AnalyticsService()
