"""Prompt templates for the planning stages."""

from dataset_planner.core.enums import AccessMethod

PROMPT_VERSION = "1.0"

TRUNCATION_MARKER = "\n... (truncated)"

DISCOVERY_PROMPT_TEMPLATE = """Find 6-8 direct dataset URLs for: "{description}"

Return ONLY valid JSON:
{{"urls": ["url1", "url2", ...]}}

Prioritize:
- Direct file links (.csv, .json, .xlsx, .zip)
- Dataset landing pages
- API endpoints
NO generic homepages."""


ANALYSIS_PROMPT_TEMPLATE = """Classify URL: {url}

Rules:
- DIRECT_DOWNLOAD: ends with .csv/.json/.xlsx/.zip OR contains /download/
- API: contains /api/ OR api.
- WEB_CRAWL: HTML page only

JSON only:
{{"accessMethod": "DIRECT_DOWNLOAD|API|WEB_CRAWL", "target": "url", "justification": "brief reason"}}"""


STRATEGY_PROMPT_TEMPLATES = {
    AccessMethod.DIRECT_DOWNLOAD: """Download file from: {target}
Provide curl command only.
JSON: {{"snippet": "curl command"}}""",
    AccessMethod.API: """API endpoint: {target}
Provide fetch request + likely schema.
JSON: {{"snippet": "fetch code", "schema": "json schema"}}""",
    AccessMethod.WEB_CRAWL: """Crawl: {target}
Provide Firecrawl config + expected schema.
JSON: {{"config": "firecrawl json", "schema": "data schema"}}""",
}


FILE_STRATEGY_PROMPT_TEMPLATE = """File: {file_name}
Snippet:
{content_sample}

Provide Python read script + schema.
JSON: {{"snippet": "python code", "schema": "data schema"}}"""


REFINEMENT_PROMPT_TEMPLATE = """Context: {strategy_context}

User wants: "{instructions}"

Provide cleaning steps in markdown. Be concise."""


def truncate(text: str, limit: int) -> str:
    """Cut text to `limit` characters, appending a marker when shortened."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def build_discovery_prompt(description: str) -> str:
    """Build the URL discovery prompt for a dataset description."""
    return DISCOVERY_PROMPT_TEMPLATE.format(description=description)


def build_analysis_prompt(url: str) -> str:
    """Build the access-method classification prompt for a URL."""
    return ANALYSIS_PROMPT_TEMPLATE.format(url=url)


def build_strategy_prompt(access_method: AccessMethod, target: str) -> str:
    """
    Build the strategy prompt for a classified URL.

    Args:
        access_method: The method the URL was classified as.
        target: The URL (or resolved target) to build a strategy for.

    Returns:
        The formatted prompt string.

    Raises:
        ValueError: If there is no template for the access method.
    """
    template = STRATEGY_PROMPT_TEMPLATES.get(access_method)
    if template is None:
        raise ValueError(f"No strategy prompt for: {access_method.value}")
    return template.format(target=target)


def build_file_strategy_prompt(file_name: str, content_sample: str, sample_limit: int) -> str:
    """
    Build the strategy prompt for a local file.

    Args:
        file_name: Name of the uploaded file.
        content_sample: Text sampled from the file.
        sample_limit: Maximum characters of the sample to include.

    Returns:
        The formatted prompt string.
    """
    return FILE_STRATEGY_PROMPT_TEMPLATE.format(
        file_name=file_name,
        content_sample=truncate(content_sample, sample_limit),
    )


def build_refinement_prompt(strategy_context: str, instructions: str, context_limit: int) -> str:
    """Build the cleaning-steps prompt from a strategy and user instructions."""
    return REFINEMENT_PROMPT_TEMPLATE.format(
        strategy_context=truncate(strategy_context, context_limit),
        instructions=instructions,
    )
