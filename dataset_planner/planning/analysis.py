"""
Analysis stage: classify a URL into an access method.

Obvious cases are decided by URL patterns without calling the LLM. The
model is only consulted for ambiguous URLs, and any malformed answer falls
back to WEB_CRAWL.
"""

import logging

from dataset_planner.core.enums import CLASSIFIABLE_METHODS, AccessMethod
from dataset_planner.core.schema import AnalysisResult
from dataset_planner.planning.retry import is_rate_limit_error
from dataset_planner.services.ai.client import LLMClient, extract_json
from dataset_planner.services.ai.prompts import build_analysis_prompt

logger = logging.getLogger(__name__)

DOWNLOAD_EXTENSIONS = (
    ".csv", ".json", ".xlsx", ".xls", ".zip", ".tar", ".gz",
    ".parquet", ".xml", ".tsv", ".txt", ".pdf",
)

DOWNLOAD_PATH_SEGMENTS = (
    "/download/", "/export/", "/file/", "/data/files/",
    "/static/data/", "/datasets/download",
)

API_MARKERS = ("/api/", "api.", "?format=json")


def detect_direct_download(url: str) -> bool:
    """Check whether a URL points straight at a downloadable file."""
    lower_url = url.lower()
    if lower_url.endswith(DOWNLOAD_EXTENSIONS):
        return True
    return any(segment in lower_url for segment in DOWNLOAD_PATH_SEGMENTS)


def detect_api(url: str) -> bool:
    """Check whether a URL looks like an API endpoint."""
    lower_url = url.lower()
    return any(marker in lower_url for marker in API_MARKERS)


def classify_by_pattern(url: str) -> AnalysisResult | None:
    """
    Classify a URL from its shape alone.

    Returns:
        AnalysisResult for unambiguous URLs, None if the LLM is needed
    """
    if detect_direct_download(url):
        return AnalysisResult(
            access_method=AccessMethod.DIRECT_DOWNLOAD,
            target=url,
            justification="Direct file URL detected by pattern.",
        )
    if detect_api(url):
        return AnalysisResult(
            access_method=AccessMethod.API,
            target=url,
            justification="API endpoint detected by pattern.",
        )
    return None


def parse_analysis_response(raw_response: str, url: str) -> AnalysisResult:
    """
    Turn a classifier response into an AnalysisResult.

    Unparseable responses and methods outside the allowed set become a
    WEB_CRAWL result with a diagnostic justification.
    """
    try:
        data = extract_json(raw_response)
    except ValueError as e:
        logger.warning(f"Unparseable classification for {url}: {e}")
        return AnalysisResult(
            access_method=AccessMethod.WEB_CRAWL,
            target=url,
            justification="Could not parse classifier response, defaulting to crawl.",
        )

    method = data.get("accessMethod") if isinstance(data, dict) else None
    if not isinstance(method, str) or method not in {m.value for m in CLASSIFIABLE_METHODS}:
        logger.warning(f"Invalid accessMethod: {method}. Defaulting to WEB_CRAWL.")
        return AnalysisResult(
            access_method=AccessMethod.WEB_CRAWL,
            target=url,
            justification="Could not determine method, defaulting to crawl.",
        )

    target = data.get("target")
    if not isinstance(target, str) or not target.strip():
        target = url
    justification = data.get("justification")
    return AnalysisResult(
        access_method=AccessMethod(method),
        target=target.strip(),
        justification=justification if isinstance(justification, str) else "",
    )


async def analyze_url(client: LLMClient, url: str) -> AnalysisResult:
    """
    Classify a URL's access method.

    Args:
        client: LLM client used for ambiguous URLs.
        url: URL to classify.

    Returns:
        The classification. Never raises except for rate-limit errors,
        which propagate so the caller can retry them.
    """
    by_pattern = classify_by_pattern(url)
    if by_pattern is not None:
        logger.debug(f"Classified {url} as {by_pattern.access_method.value} by pattern")
        return by_pattern

    try:
        response = await client.generate(
            build_analysis_prompt(url),
            temperature=0.2,
            max_tokens=200,
        )
    except Exception as e:
        if is_rate_limit_error(e):
            raise
        logger.error(f"Error in analysis agent for URL {url}: {e}")
        return AnalysisResult(
            access_method=AccessMethod.WEB_CRAWL,
            target=url,
            justification="Error occurred, defaulting to web crawl.",
        )

    return parse_analysis_response(response, url)
