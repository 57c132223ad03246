"""
Per-URL Pipeline Module
=======================

Runs one discovered URL through validation, classification and strategy
generation.

Stages:
1. Validate - advisory crawl check; failure is recorded, never blocking
2. Classify - pattern rules, then the LLM (retried on rate limits)
3. Generate - method-specific strategy (retried on rate limits)

If classification or generation still fails after retries, one more
unretried attempt is made, marked as failed validation, before the URL
is dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dataset_planner.core.enums import ActivityStatus, AgentName, ValidationStatus
from dataset_planner.core.schema import DiscoveredLink
from dataset_planner.planning.activity import ActivityEmitter
from dataset_planner.planning.analysis import analyze_url
from dataset_planner.planning.retry import RetryPolicy, retry_on_rate_limit
from dataset_planner.planning.strategy import generate_strategy
from dataset_planner.planning.validation import ValidationPoller, ValidationResult
from dataset_planner.services.ai.client import LLMClient

logger = logging.getLogger(__name__)


def elapsed_ms(started: float) -> int:
    """Milliseconds since a time.monotonic() reading."""
    return int((time.monotonic() - started) * 1000)


@dataclass
class UrlOutcome:
    """
    Result of processing one URL.

    Exactly one of `link` and `error` is set: `link` when an entry was
    produced, `error` when the URL was skipped.
    """

    url: str
    link: DiscoveredLink | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.link is not None


class UrlPipeline:
    """Sequences the stages for a single URL."""

    def __init__(
        self,
        llm: LLMClient,
        emitter: ActivityEmitter,
        poller: ValidationPoller | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.llm = llm
        self.emitter = emitter
        self.poller = poller
        self.retry_policy = retry_policy or RetryPolicy()

        retrying = retry_on_rate_limit(self.retry_policy, sleep=sleep)
        self._analyze_retried = retrying(analyze_url)
        self._generate_retried = retrying(generate_strategy)

    async def process(self, url: str, position: int, total: int) -> UrlOutcome:
        """
        Produce a plan entry for one URL.

        Args:
            url: The discovered URL
            position: 1-based position in the discovery list
            total: Number of discovered URLs

        Returns:
            UrlOutcome holding the link, or the error that caused a skip
        """
        started = time.monotonic()

        try:
            validation = await self._validate(url, position, total, started)
            link = await self._classify_and_generate(url, validation, retry=True)
            return UrlOutcome(url=url, link=link)
        except Exception as e:
            logger.warning(f"Error processing {url}, attempting to continue: {e}")

        # a fallback entry is never treated as validated
        try:
            link = await self._classify_and_generate(
                url, ValidationResult(status=ValidationStatus.FAILED), retry=False
            )
            logger.info(f"Recovered {url} on fallback attempt")
            return UrlOutcome(url=url, link=link)
        except Exception as e:
            logger.error(f"Could not create plan entry for {url}: {e}")
            self.emitter.emit(
                AgentName.VALIDATION,
                ActivityStatus.ERROR,
                f"Error: {e} - Skipping URL",
                url=url,
                duration=elapsed_ms(started),
            )
            return UrlOutcome(url=url, error=str(e))

    async def _validate(
        self, url: str, position: int, total: int, started: float
    ) -> ValidationResult:
        """Run the advisory validation stage."""
        if self.poller is None:
            return ValidationResult(status=ValidationStatus.UNVALIDATED)

        self.emitter.emit(
            AgentName.VALIDATION,
            ActivityStatus.WORKING,
            f"Validating URL {position}/{total}",
            url=url,
            progress=position,
            total=total,
        )

        try:
            result = await self.poller.validate(url)
        except Exception as e:
            logger.warning(f"Validation raised for {url}: {e}")
            result = ValidationResult(status=ValidationStatus.FAILED, error=str(e))

        if result.status == ValidationStatus.FAILED:
            self.emitter.emit(
                AgentName.VALIDATION,
                ActivityStatus.ERROR,
                f"Validation failed: {result.error} - Continuing anyway",
                url=url,
                duration=elapsed_ms(started),
            )
        elif result.status == ValidationStatus.VALID:
            self.emitter.emit(
                AgentName.VALIDATION,
                ActivityStatus.SUCCESS,
                "URL validated successfully",
                url=url,
                duration=elapsed_ms(started),
            )
        else:
            self.emitter.emit(
                AgentName.VALIDATION,
                ActivityStatus.ERROR,
                "Crawl incomplete - Continuing anyway",
                url=url,
                duration=elapsed_ms(started),
            )
        return result

    async def _classify_and_generate(
        self, url: str, validation: ValidationResult, retry: bool
    ) -> DiscoveredLink:
        """Run classification then strategy generation, emitting stage events."""
        analyze = self._analyze_retried if retry else analyze_url
        generate = self._generate_retried if retry else generate_strategy

        stage = AgentName.ANALYSIS
        stage_started = time.monotonic()
        try:
            self.emitter.emit(
                AgentName.ANALYSIS, ActivityStatus.WORKING, "Analyzing access method...", url=url
            )
            analysis = await analyze(self.llm, url)
            self.emitter.emit(
                AgentName.ANALYSIS,
                ActivityStatus.SUCCESS,
                f"Detected: {analysis.access_method.value}",
                url=url,
                duration=elapsed_ms(stage_started),
            )

            stage = AgentName.STRATEGY
            stage_started = time.monotonic()
            self.emitter.emit(
                AgentName.STRATEGY,
                ActivityStatus.WORKING,
                "Generating ingestion strategy...",
                url=url,
            )
            strategy = await generate(self.llm, analysis.access_method, analysis.target)
            self.emitter.emit(
                AgentName.STRATEGY,
                ActivityStatus.SUCCESS,
                "Strategy generated",
                url=url,
                duration=elapsed_ms(stage_started),
            )
        except Exception as e:
            self.emitter.emit(
                stage,
                ActivityStatus.ERROR,
                f"{stage.value.capitalize()} failed: {e}",
                url=url,
                duration=elapsed_ms(stage_started),
            )
            raise

        return DiscoveredLink(
            url=url,
            access_method=analysis.access_method,
            justification=analysis.justification,
            strategy=strategy,
            validation_status=validation.status,
            crawl_id=validation.crawl_id,
        )
