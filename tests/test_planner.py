"""Tests for the planner orchestrator."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from dataset_planner.core.config import PlannerConfig, ValidationConfig
from dataset_planner.core.enums import AccessMethod, ActivityStatus, AgentName, ValidationStatus
from dataset_planner.core.errors import GenerationError, PlanningError, RefinementError
from dataset_planner.core.schema import DiscoveredLink, Strategy
from dataset_planner.planning.activity import ActivityEmitter, ActivityLog
from dataset_planner.planning.discovery import DISCOVERY_FAILED_MESSAGE
from dataset_planner.planning.planner import (
    MIDDLE_SAMPLE_MARKER,
    Planner,
    PlannerContext,
    sample_file,
)
from dataset_planner.services.firecrawl import CrawlSubmission, FirecrawlClient


def route(discovery: str | Exception, strategy: str = '{"snippet": "get it"}', refinement: str = "- clean"):
    """Build a prompt handler that answers each stage."""

    def handler(prompt: str):
        if prompt.startswith("Find "):
            return discovery
        if prompt.startswith("Context:"):
            return refinement
        if prompt.startswith("Classify URL"):
            return '{"accessMethod": "WEB_CRAWL", "justification": "HTML page"}'
        return strategy

    return handler


def _planner(llm, sleep, log: ActivityLog | None = None, firecrawl=None) -> Planner:
    context = PlannerContext(
        llm=llm,
        emitter=ActivityEmitter(log),
        firecrawl=firecrawl,
        config=PlannerConfig(),
        sleep=sleep,
    )
    return Planner(context)


def _link() -> DiscoveredLink:
    return DiscoveredLink(
        url="https://example.org/api/data",
        access_method=AccessMethod.API,
        justification="API endpoint detected by pattern.",
        strategy=Strategy(method=AccessMethod.API, url="https://example.org/api/data", snippet="fetch()"),
    )


class TestCreateFullIngestionPlan:
    """Tests for Planner.create_full_ingestion_plan."""

    @pytest.mark.asyncio
    async def test_pattern_classified_in_order(self, scripted_llm, recording_sleep) -> None:
        """Test that download and API URLs are planned in discovery order."""
        urls = ["https://example.org/temps.csv", "https://example.org/api/data"]
        llm = scripted_llm(handler=route(json.dumps({"urls": urls})))
        log = ActivityLog()

        links = await _planner(llm, recording_sleep, log).create_full_ingestion_plan("temps")

        assert [link.url for link in links] == urls
        assert [link.access_method for link in links] == [AccessMethod.DIRECT_DOWNLOAD, AccessMethod.API]
        assert all(link.strategy.method == link.access_method for link in links)
        assert not any(call["prompt"].startswith("Classify URL") for call in llm.calls)
        # one inter-URL delay between the two URLs
        assert recording_sleep.delays == [0.5]

        discovery = [a for a in log.events if a.agent == AgentName.DISCOVERY]
        assert [a.status for a in discovery] == [ActivityStatus.WORKING, ActivityStatus.SUCCESS]
        assert discovery[1].message == "Found 2 potential URLs"
        assert discovery[1].details.total == 2

    @pytest.mark.asyncio
    async def test_zero_urls(self, scripted_llm, recording_sleep) -> None:
        """Test that no URLs yields [] and exactly one discovery error."""
        llm = scripted_llm(handler=route('{"urls": []}'))
        log = ActivityLog()

        links = await _planner(llm, recording_sleep, log).create_full_ingestion_plan("nothing")

        assert links == []
        errors = [a for a in log.events if a.status == ActivityStatus.ERROR]
        assert len(errors) == 1
        assert errors[0].agent == AgentName.DISCOVERY
        assert errors[0].message == "No URLs found"

    @pytest.mark.asyncio
    async def test_discovery_failure(self, scripted_llm, recording_sleep) -> None:
        """Test that a failed discovery raises PlanningError."""
        llm = scripted_llm(handler=route("not json at all"))
        log = ActivityLog()

        with pytest.raises(PlanningError) as exc_info:
            await _planner(llm, recording_sleep, log).create_full_ingestion_plan("temps")

        assert str(exc_info.value) == DISCOVERY_FAILED_MESSAGE
        assert log.events[-1].agent == AgentName.DISCOVERY
        assert log.events[-1].status == ActivityStatus.ERROR

    @pytest.mark.asyncio
    async def test_discovery_rate_limit_exhausted(self, scripted_llm, recording_sleep) -> None:
        """Test that discovery is retried four times before failing."""
        llm = scripted_llm(handler=route(GenerationError("HTTP 429")))

        with pytest.raises(PlanningError):
            await _planner(llm, recording_sleep).create_full_ingestion_plan("temps")

        assert len(llm.calls) == 4
        assert recording_sleep.delays == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_max_urls(self, scripted_llm, recording_sleep) -> None:
        """Test truncating the discovered list."""
        urls = [f"https://example.org/{i}.csv" for i in range(5)]
        llm = scripted_llm(handler=route(json.dumps({"urls": urls})))

        links = await _planner(llm, recording_sleep).create_full_ingestion_plan("x", max_urls=2)

        assert [link.url for link in links] == urls[:2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_urls", [0, -1])
    async def test_max_urls_below_one(self, scripted_llm, recording_sleep, max_urls: int) -> None:
        """Test that a limit below one is rejected before discovery."""
        llm = scripted_llm(handler=route(json.dumps({"urls": ["https://example.org/a.csv"]})))

        with pytest.raises(ValueError):
            await _planner(llm, recording_sleep).create_full_ingestion_plan("x", max_urls=max_urls)

        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_dropped_url_keeps_order(self, scripted_llm, recording_sleep) -> None:
        """Test that a skipped URL leaves an ordered subsequence."""
        urls = ["https://example.org/a.csv", "https://example.org/page", "https://example.org/c.csv"]

        def handler(prompt: str):
            if prompt.startswith("Find "):
                return json.dumps({"urls": urls})
            if "example.org/page" in prompt:
                return GenerationError("quota exceeded")
            return '{"snippet": "curl"}'

        llm = scripted_llm(handler=handler)
        links = await _planner(llm, recording_sleep).create_full_ingestion_plan("x")

        assert [link.url for link in links] == [urls[0], urls[2]]

    @pytest.mark.asyncio
    async def test_validation_submission_failure(self, scripted_llm, recording_sleep) -> None:
        """Test that failed validation still produces a valid strategy."""
        firecrawl = MagicMock(spec=FirecrawlClient)
        firecrawl.submit_crawl = AsyncMock(
            return_value=CrawlSubmission(success=False, error="Missing Firecrawl API key")
        )
        llm = scripted_llm(handler=route('{"urls": ["https://example.org/api/data"]}'))

        links = await _planner(llm, recording_sleep, firecrawl=firecrawl).create_full_ingestion_plan("x")

        assert len(links) == 1
        assert links[0].validation_status == ValidationStatus.FAILED
        assert links[0].strategy.snippet == "get it"
        firecrawl.check_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_observer(self, scripted_llm, recording_sleep) -> None:
        """Test swapping the observer between runs."""
        llm = scripted_llm(handler=route('{"urls": []}'))
        planner = _planner(llm, recording_sleep)
        log = ActivityLog()

        planner.set_observer(log)
        await planner.create_full_ingestion_plan("x")
        assert len(log) == 2

        planner.set_observer(None)
        await planner.create_full_ingestion_plan("x")
        assert len(log) == 2


class TestSampleFile:
    """Tests for sample_file."""

    def test_small_file(self, tmp_path: Path) -> None:
        """Test that a small file is read whole."""
        path = tmp_path / "small.csv"
        path.write_text("a,b\n1,2\n")
        assert sample_file(path) == "a,b\n1,2\n"

    def test_large_file_middle_sample(self, tmp_path: Path) -> None:
        """Test head and middle samples for files over 4096 bytes."""
        path = tmp_path / "big.txt"
        content = b"H" * 2048 + b"x" * 1000 + b"M" * 2048 + b"y" * 1000
        path.write_bytes(content)
        size = len(content)

        sample = sample_file(path)

        head, middle = sample.split(MIDDLE_SAMPLE_MARKER)
        assert head == "H" * 2048
        start = size // 2 - 1024
        assert middle == content[start:start + 2048].decode()

    def test_invalid_utf8_replaced(self, tmp_path: Path) -> None:
        """Test that undecodable bytes are replaced."""
        path = tmp_path / "bin.dat"
        path.write_bytes(b"ok\xff\xfe")
        assert sample_file(path).startswith("ok")
        assert "\ufffd" in sample_file(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            sample_file(tmp_path / "nope.csv")


class TestCreatePlanForLocalFile:
    """Tests for Planner.create_plan_for_local_file."""

    @pytest.mark.asyncio
    async def test_local_file(self, scripted_llm, recording_sleep, tmp_path: Path) -> None:
        """Test planning a local CSV file."""
        path = tmp_path / "readings.csv"
        path.write_text("station,temp\nA,21.5\n")
        llm = scripted_llm(['{"snippet": "pd.read_csv(path)", "schema": "station: str"}'])
        log = ActivityLog()

        link = await _planner(llm, recording_sleep, log).create_plan_for_local_file(path)

        assert link.url == "readings.csv"
        assert link.access_method == AccessMethod.LOCAL_FILE
        assert link.strategy.method == AccessMethod.LOCAL_FILE
        assert link.justification == "Ingestion plan for uploaded file 'readings.csv'."
        assert link.validation_status == ValidationStatus.UNVALIDATED
        assert "station,temp" in llm.calls[0]["prompt"]
        assert [(a.agent, a.status) for a in log.events] == [
            (AgentName.STRATEGY, ActivityStatus.WORKING),
            (AgentName.STRATEGY, ActivityStatus.SUCCESS),
        ]
        assert log.events[0].message == "Analyzing local file: readings.csv"

    @pytest.mark.asyncio
    async def test_missing_file(self, scripted_llm, recording_sleep, tmp_path: Path) -> None:
        """Test that a missing file raises FileNotFoundError."""
        planner = _planner(scripted_llm([]), recording_sleep)
        with pytest.raises(FileNotFoundError):
            await planner.create_plan_for_local_file(tmp_path / "nope.csv")


class TestRefine:
    """Tests for Planner.refine."""

    @pytest.mark.asyncio
    async def test_blank_instructions(self, scripted_llm, recording_sleep) -> None:
        """Test that blank instructions return the input unchanged."""
        llm = scripted_llm([])
        link = _link()

        assert await _planner(llm, recording_sleep).refine(link, "   \n") == link
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_refine_returns_copy(self, scripted_llm, recording_sleep) -> None:
        """Test that refinement attaches steps to a copy."""
        llm = scripted_llm(["1. Drop duplicate rows"])
        log = ActivityLog()
        link = _link()

        refined = await _planner(llm, recording_sleep, log).refine(link, "dedupe")

        assert refined.cleaning_strategy == "1. Drop duplicate rows"
        assert link.cleaning_strategy is None
        assert refined.url == link.url
        assert refined.strategy == link.strategy
        assert '"snippet": "fetch()"' in llm.calls[0]["prompt"]
        assert [a.status for a in log.events] == [ActivityStatus.WORKING, ActivityStatus.SUCCESS]

    @pytest.mark.asyncio
    async def test_refine_rate_limit_retried(self, scripted_llm, recording_sleep) -> None:
        """Test that a rate-limited refinement call is retried."""
        llm = scripted_llm([GenerationError("HTTP 429"), "- drop nulls"])

        refined = await _planner(llm, recording_sleep).refine(_link(), "clean")

        assert refined.cleaning_strategy == "- drop nulls"
        assert len(llm.calls) == 2
        assert recording_sleep.delays == [0.5]

    @pytest.mark.asyncio
    async def test_refine_failure(self, scripted_llm, recording_sleep) -> None:
        """Test that refinement errors are reported and re-raised."""
        llm = scripted_llm([GenerationError("invalid key")])
        log = ActivityLog()

        with pytest.raises(RefinementError):
            await _planner(llm, recording_sleep, log).refine(_link(), "dedupe")

        assert log.events[-1].agent == AgentName.REFINEMENT
        assert log.events[-1].status == ActivityStatus.ERROR


class TestPlannerContext:
    """Tests for PlannerContext.from_config."""

    def test_from_config(self, monkeypatch) -> None:
        """Test building a context with validation enabled."""
        monkeypatch.setenv("GEMINI_API_KEY", "g-test")
        context = PlannerContext.from_config(config=PlannerConfig())

        assert context.llm.provider.value == "gemini"
        assert isinstance(context.firecrawl, FirecrawlClient)

    def test_validation_disabled(self, monkeypatch) -> None:
        """Test that disabled validation leaves no crawl client."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        config = PlannerConfig(validation=ValidationConfig(enabled=False))

        context = PlannerContext.from_config(config=config, provider="openai")
        assert context.firecrawl is None
        assert context.llm.provider.value == "openai"

    def test_validate_flag(self, monkeypatch) -> None:
        """Test skipping validation per call."""
        monkeypatch.setenv("GEMINI_API_KEY", "g-test")
        assert PlannerContext.from_config(config=PlannerConfig(), validate=False).firecrawl is None

    def test_missing_key(self) -> None:
        """Test that a missing provider key raises ValueError."""
        with pytest.raises(ValueError):
            PlannerContext.from_config(config=PlannerConfig())


class TestProcessUrl:
    """Tests for Planner.process_url."""

    @pytest.mark.asyncio
    async def test_single_url(self, scripted_llm, recording_sleep) -> None:
        """Test planning one URL outside a discovery run."""
        llm = scripted_llm(handler=route('{"urls": []}'))
        log = ActivityLog()

        outcome = await _planner(llm, recording_sleep, log).process_url("https://example.org/stats")

        assert outcome.ok
        assert outcome.link.access_method == AccessMethod.WEB_CRAWL
        assert outcome.link.justification == "HTML page"
        assert not any(a.agent == AgentName.DISCOVERY for a in log.events)
