"""
Validation Poller Module
========================

Drives a Firecrawl crawl job for one URL through its lifecycle:
submit, then poll at a fixed interval until the job leaves the
in-progress state or the attempt budget runs out.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dataset_planner.core.enums import ActivityStatus, AgentName, ValidationStatus
from dataset_planner.planning.activity import ActivityEmitter
from dataset_planner.services.firecrawl import FirecrawlClient

logger = logging.getLogger(__name__)

IN_PROGRESS_STATUSES = frozenset({"scraping", "queued"})
COMPLETED_STATUS = "completed"


@dataclass
class ValidationResult:
    """Outcome of validating one URL."""

    status: ValidationStatus
    crawl_id: str | None = None
    error: str | None = None
    status_checks: int = 0


class ValidationPoller:
    """Submits a crawl and polls it to a terminal state."""

    def __init__(
        self,
        firecrawl: FirecrawlClient,
        emitter: ActivityEmitter,
        poll_interval: float = 2.0,
        max_attempts: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.firecrawl = firecrawl
        self.emitter = emitter
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def validate(self, url: str) -> ValidationResult:
        """
        Validate a URL by crawling it.

        Makes at most one submission and at most `max_attempts` status
        queries.

        Returns:
            FAILED if submission failed, VALID if the crawl completed,
            UNVALIDATED otherwise
        """
        submission = await self.firecrawl.submit_crawl(url)
        if not submission.success or not submission.crawl_id:
            logger.warning(f"Validation submission failed for {url}: {submission.error}")
            return ValidationResult(
                status=ValidationStatus.FAILED,
                error=submission.error or "Crawl submission failed",
            )

        crawl_id = submission.crawl_id
        crawl_status = "scraping"
        attempts = 0
        error: str | None = None

        while crawl_status in IN_PROGRESS_STATUSES and attempts < self.max_attempts:
            await self._sleep(self.poll_interval)

            self.emitter.emit(
                AgentName.VALIDATION,
                ActivityStatus.WORKING,
                f"Crawling in progress (attempt {attempts + 1}/{self.max_attempts})",
                url=url,
            )

            status_result = await self.firecrawl.check_status(crawl_id)
            attempts += 1

            if not status_result.success:
                error = status_result.error or "Status check failed"
                self.emitter.emit(
                    AgentName.VALIDATION,
                    ActivityStatus.ERROR,
                    "Status check failed - Continuing anyway",
                    url=url,
                )
                logger.warning(f"Status check failed for {url}: {error}")
                break

            crawl_status = status_result.status or ""

        if crawl_status == COMPLETED_STATUS and error is None:
            return ValidationResult(
                status=ValidationStatus.VALID,
                crawl_id=crawl_id,
                status_checks=attempts,
            )

        if error is None:
            error = f"Crawl ended in status '{crawl_status}' after {attempts} checks"
        return ValidationResult(
            status=ValidationStatus.UNVALIDATED,
            crawl_id=crawl_id,
            error=error,
            status_checks=attempts,
        )
