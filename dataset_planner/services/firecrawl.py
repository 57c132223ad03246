"""
Firecrawl Client Module
=======================

Submits crawl jobs to the Firecrawl API and queries their status. Both
calls report failures through their result objects instead of raising,
so callers can treat validation as advisory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from dataset_planner.core.settings import SettingsStore

logger = logging.getLogger(__name__)

SERVICE_NAME = "firecrawl"


@dataclass
class CrawlSubmission:
    """Result of submitting a crawl job."""

    success: bool
    crawl_id: str | None = None
    error: str | None = None


@dataclass
class CrawlStatus:
    """Result of querying a crawl job's status."""

    success: bool
    status: str | None = None
    data: list[dict[str, Any]] = field(default_factory=list)
    total: int | None = None
    completed: int | None = None
    error: str | None = None


def _error_text(response: httpx.Response) -> str:
    """Extract a readable error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class FirecrawlClient:
    """
    Async client for the Firecrawl crawl API.

    The API key is looked up in the settings store on every call, so a key
    saved while the process is running takes effect immediately.
    """

    def __init__(
        self,
        settings: SettingsStore,
        base_url: str = "https://api.firecrawl.dev",
        timeout: float = 30.0,
        crawl_limit: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.crawl_limit = crawl_limit
        self._transport = transport

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    async def submit_crawl(self, url: str) -> CrawlSubmission:
        """
        Start a crawl job for a URL.

        Args:
            url: URL to crawl

        Returns:
            CrawlSubmission with the job id, or the error that prevented submission
        """
        api_key = self.settings.get_api_key(SERVICE_NAME)
        if not api_key:
            return CrawlSubmission(success=False, error="Missing Firecrawl API key")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/v1/crawl",
                    json={"url": url, "limit": self.crawl_limit},
                    headers=self._headers(api_key),
                )
        except httpx.TimeoutException:
            return CrawlSubmission(success=False, error=f"Timeout after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.warning(f"Crawl submission failed for {url}: {e}")
            return CrawlSubmission(success=False, error=str(e))

        if response.status_code >= 400:
            return CrawlSubmission(success=False, error=_error_text(response))

        try:
            data = response.json()
        except ValueError:
            return CrawlSubmission(success=False, error="Invalid JSON from Firecrawl")

        crawl_id = data.get("id") if isinstance(data, dict) else None
        if not crawl_id:
            return CrawlSubmission(success=False, error="Firecrawl response missing crawl id")

        logger.debug(f"Submitted crawl {crawl_id} for {url}")
        return CrawlSubmission(success=True, crawl_id=str(crawl_id))

    async def check_status(self, crawl_id: str) -> CrawlStatus:
        """
        Query the status of a crawl job.

        Args:
            crawl_id: Job id returned by submit_crawl

        Returns:
            CrawlStatus with the job status, or the error that prevented the query
        """
        api_key = self.settings.get_api_key(SERVICE_NAME)
        if not api_key:
            return CrawlStatus(success=False, error="Missing Firecrawl API key")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self.base_url}/v1/crawl/{crawl_id}",
                    headers=self._headers(api_key),
                )
        except httpx.TimeoutException:
            return CrawlStatus(success=False, error=f"Timeout after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.warning(f"Status check failed for crawl {crawl_id}: {e}")
            return CrawlStatus(success=False, error=str(e))

        if response.status_code >= 400:
            return CrawlStatus(success=False, error=_error_text(response))

        try:
            data = response.json()
        except ValueError:
            return CrawlStatus(success=False, error="Invalid JSON from Firecrawl")

        if not isinstance(data, dict):
            return CrawlStatus(success=False, error="Unexpected status payload")

        return CrawlStatus(
            success=True,
            status=data.get("status"),
            data=data.get("data") or [],
            total=data.get("total"),
            completed=data.get("completed"),
        )
