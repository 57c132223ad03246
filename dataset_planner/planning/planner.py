"""
Ingestion Planner Module
========================

Entry points for building ingestion plans:

- create_full_ingestion_plan: description -> discovered URLs -> plan entries
- create_plan_for_local_file: local file sample -> single LOCAL_FILE entry
- refine: add cleaning steps to an existing entry

All collaborators (LLM client, crawl service, activity observer, config)
are carried on an explicit PlannerContext.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from dataset_planner.core.config import PlannerConfig, get_default_config
from dataset_planner.core.enums import AccessMethod, ActivityStatus, AgentName
from dataset_planner.core.errors import PlanningError
from dataset_planner.core.schema import DiscoveredLink
from dataset_planner.core.settings import SettingsStore, get_default_settings_store
from dataset_planner.planning.activity import ActivityEmitter, ActivityObserver
from dataset_planner.planning.discovery import DISCOVERY_FAILED_MESSAGE, find_dataset_urls
from dataset_planner.planning.pipeline import UrlOutcome, UrlPipeline, elapsed_ms
from dataset_planner.planning.refinement import get_cleaning_steps
from dataset_planner.planning.retry import RetryPolicy, retry_on_rate_limit
from dataset_planner.planning.scheduling import FixedDelaySequencer
from dataset_planner.planning.strategy import generate_file_strategy
from dataset_planner.planning.validation import ValidationPoller
from dataset_planner.services.ai.client import LLMClient, create_client_from_env
from dataset_planner.services.firecrawl import FirecrawlClient

logger = logging.getLogger(__name__)

MIDDLE_SAMPLE_MARKER = "\n\n... (sample from middle) ...\n\n"


def sample_file(path: Path | str, chunk_size: int = 2048) -> str:
    """
    Read a text sample from a file.

    Takes the first `chunk_size` bytes and, for files larger than twice
    that, another `chunk_size` bytes centred on the midpoint.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    size = path.stat().st_size

    with open(path, "rb") as f:
        head = f.read(chunk_size)
        sample = head.decode("utf-8", errors="replace")

        if size > chunk_size * 2:
            f.seek(size // 2 - chunk_size // 2)
            middle = f.read(chunk_size)
            sample += MIDDLE_SAMPLE_MARKER + middle.decode("utf-8", errors="replace")

    return sample


@dataclass
class PlannerContext:
    """Everything a Planner needs, passed in explicitly."""

    llm: LLMClient
    emitter: ActivityEmitter = field(default_factory=ActivityEmitter)
    firecrawl: FirecrawlClient | None = None
    config: PlannerConfig = field(default_factory=PlannerConfig)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def from_config(
        cls,
        config: PlannerConfig | None = None,
        settings: SettingsStore | None = None,
        provider: str | None = None,
        observer: ActivityObserver | None = None,
        validate: bool = True,
    ) -> PlannerContext:
        """
        Build a context from configuration and the environment.

        Args:
            config: Planner configuration (defaults to get_default_config())
            settings: Settings store for the Firecrawl key
            provider: LLM provider override
            observer: Initial activity observer
            validate: Set False to skip crawl validation regardless of config

        Raises:
            ValueError: If the LLM provider is unknown or its key is missing
        """
        config = config or get_default_config()
        llm = create_client_from_env(provider or config.provider, model=config.model)

        firecrawl = None
        if validate and config.validation.enabled:
            firecrawl = FirecrawlClient(
                settings=settings or get_default_settings_store(),
                base_url=config.validation.firecrawl_base_url,
                timeout=config.validation.request_timeout,
                crawl_limit=config.validation.crawl_limit,
            )

        return cls(
            llm=llm,
            emitter=ActivityEmitter(observer),
            firecrawl=firecrawl,
            config=config,
        )


class Planner:
    """Builds ingestion plans from descriptions, files and refinements."""

    def __init__(self, context: PlannerContext) -> None:
        self.context = context
        self.retry_policy = RetryPolicy.from_config(context.config.rate_limit)

        retrying = retry_on_rate_limit(self.retry_policy, sleep=context.sleep)
        self._find_urls = retrying(find_dataset_urls)
        self._file_strategy = retrying(generate_file_strategy)
        self._cleaning_steps = retrying(get_cleaning_steps)

        poller = None
        if context.firecrawl is not None:
            poller = ValidationPoller(
                firecrawl=context.firecrawl,
                emitter=context.emitter,
                poll_interval=context.config.validation.poll_interval,
                max_attempts=context.config.validation.max_poll_attempts,
                sleep=context.sleep,
            )
        self.pipeline = UrlPipeline(
            llm=context.llm,
            emitter=context.emitter,
            poller=poller,
            retry_policy=self.retry_policy,
            sleep=context.sleep,
        )

    @property
    def emitter(self) -> ActivityEmitter:
        return self.context.emitter

    def set_observer(self, observer: ActivityObserver | None) -> None:
        """Register (or with None, remove) the activity observer."""
        self.context.emitter.set_observer(observer)

    async def create_full_ingestion_plan(
        self,
        description: str,
        max_urls: int | None = None,
    ) -> list[DiscoveredLink]:
        """
        Discover sources for a description and plan each one.

        URLs are processed one at a time with a fixed delay between them.
        URLs that cannot be planned are left out of the result.

        Args:
            description: Natural-language dataset request
            max_urls: Optional limit on URLs to process

        Returns:
            Plan entries in discovery order (possibly empty)

        Raises:
            PlanningError: If discovery fails after retries
            ValueError: If max_urls is less than 1
        """
        if max_urls is not None and max_urls < 1:
            raise ValueError("max_urls must be at least 1")

        started = time.monotonic()
        self.emitter.emit(
            AgentName.DISCOVERY, ActivityStatus.WORKING, "Searching for dataset URLs..."
        )

        try:
            urls = await self._find_urls(self.context.llm, description)
        except Exception as e:
            logger.error(f"Discovery failed: {e}")
            self.emitter.emit(
                AgentName.DISCOVERY,
                ActivityStatus.ERROR,
                DISCOVERY_FAILED_MESSAGE,
                duration=elapsed_ms(started),
            )
            raise PlanningError(DISCOVERY_FAILED_MESSAGE) from e

        if max_urls is not None:
            urls = urls[:max_urls]

        if not urls:
            self.emitter.emit(
                AgentName.DISCOVERY,
                ActivityStatus.ERROR,
                "No URLs found",
                duration=elapsed_ms(started),
            )
            return []

        total = len(urls)
        self.emitter.emit(
            AgentName.DISCOVERY,
            ActivityStatus.SUCCESS,
            f"Found {total} potential URLs",
            total=total,
            duration=elapsed_ms(started),
        )

        sequencer = FixedDelaySequencer(
            self.context.config.rate_limit.delay_between_calls,
            sleep=self.context.sleep,
        )
        outcomes: list[UrlOutcome] = []
        for position, url in enumerate(urls, start=1):
            await sequencer.wait_turn()
            outcomes.append(await self.pipeline.process(url, position, total))

        links = [outcome.link for outcome in outcomes if outcome.link is not None]
        skipped = total - len(links)
        logger.info(
            f"Plan complete: {len(links)} entries, {skipped} skipped "
            f"in {elapsed_ms(started)}ms"
        )
        return links

    async def process_url(self, url: str, position: int = 1, total: int = 1) -> UrlOutcome:
        """Run the per-URL pipeline for a single URL."""
        return await self.pipeline.process(url, position, total)

    async def create_plan_for_local_file(self, path: Path | str) -> DiscoveredLink:
        """
        Plan ingestion of a local file from a sample of its contents.

        Local files are never crawl-validated.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(path)
        started = time.monotonic()
        sampling = self.context.config.sampling

        self.emitter.emit(
            AgentName.STRATEGY,
            ActivityStatus.WORKING,
            f"Analyzing local file: {path.name}",
        )

        sample = sample_file(path, sampling.chunk_size)
        strategy = await self._file_strategy(
            self.context.llm, path.name, sample, sampling.file_sample_limit
        )

        self.emitter.emit(
            AgentName.STRATEGY,
            ActivityStatus.SUCCESS,
            f"Strategy generated for {path.name}",
            duration=elapsed_ms(started),
        )

        return DiscoveredLink(
            url=path.name,
            access_method=AccessMethod.LOCAL_FILE,
            justification=f"Ingestion plan for uploaded file '{path.name}'.",
            strategy=strategy,
        )

    async def refine(self, link: DiscoveredLink, instructions: str) -> DiscoveredLink:
        """
        Return a copy of a plan entry with cleaning steps attached.

        Blank instructions return the entry unchanged. The input is never
        modified.
        """
        if not instructions.strip():
            return link

        started = time.monotonic()
        self.emitter.emit(
            AgentName.REFINEMENT,
            ActivityStatus.WORKING,
            "Generating cleaning steps...",
            url=link.url,
        )

        try:
            steps = await self._cleaning_steps(
                self.context.llm,
                link.strategy.to_context(),
                instructions,
                self.context.config.sampling.context_limit,
            )
        except Exception as e:
            self.emitter.emit(
                AgentName.REFINEMENT,
                ActivityStatus.ERROR,
                f"Refinement failed: {e}",
                url=link.url,
                duration=elapsed_ms(started),
            )
            raise

        self.emitter.emit(
            AgentName.REFINEMENT,
            ActivityStatus.SUCCESS,
            "Cleaning strategy generated",
            url=link.url,
            duration=elapsed_ms(started),
        )
        return link.model_copy(update={"cleaning_strategy": steps})
