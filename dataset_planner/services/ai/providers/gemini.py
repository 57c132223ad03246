"""Google Gemini provider implementation (REST API via httpx)."""

import logging

import httpx

from dataset_planner.services.ai.client import LLMClient, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash-exp"
API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient(LLMClient):
    """Gemini generateContent client."""

    provider = LLMProvider.GEMINI

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Google AI Studio API key.
            model: Model name (defaults to gemini-2.0-flash-exp).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        """Generate text using Gemini."""
        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        url = f"{API_BASE_URL}/models/{self.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": full_prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"x-goog-api-key": self.api_key},
                )
            if response.status_code != 200:
                raise httpx.HTTPStatusError(
                    f"Gemini API error: HTTP {response.status_code}: {response.text[:200]}",
                    request=response.request,
                    response=response,
                )
            data = response.json()
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise self._wrap_error(e) from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            text = ""
        logger.debug(f"Gemini response ({len(text)} chars): {text[:500]}")
        if not text:
            raise self._wrap_error(ValueError("Invalid response from LLM service"))
        return text
