"""OpenAI and OpenAI-compatible (DeepSeek, Qwen) provider implementation."""

import logging

from dataset_planner.services.ai.client import LLMClient, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.DEEPSEEK: "deepseek-chat",
    LLMProvider.QWEN: "qwen-plus",
}

# DeepSeek and Qwen expose OpenAI-compatible chat completion endpoints
BASE_URLS = {
    LLMProvider.OPENAI: None,
    LLMProvider.DEEPSEEK: "https://api.deepseek.com",
    LLMProvider.QWEN: "https://dashscope-intl.aliyuncs.com/compatible-mode/v1",
}


class OpenAIClient(LLMClient):
    """Chat-completions client for OpenAI and compatible providers."""

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        provider: LLMProvider = LLMProvider.OPENAI,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: API key for the provider.
            model: Model name (defaults per provider).
            provider: One of openai, deepseek or qwen.
        """
        try:
            import openai
        except ImportError:
            raise ImportError(
                "openai package is required. Install with: pip install openai"
            )

        if provider not in DEFAULT_MODELS:
            raise ValueError(f"Provider {provider.value} is not OpenAI-compatible")

        self.provider = provider
        self.client = openai.AsyncOpenAI(api_key=api_key, base_url=BASE_URLS[provider])
        self.model = model or DEFAULT_MODELS[provider]

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        """Generate text using a chat completion."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
            )
        except Exception as e:
            logger.error(f"{self.provider.value} API error: {e}")
            raise self._wrap_error(e) from e

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        logger.debug(f"{self.provider.value} response ({len(text)} chars): {text[:500]}")
        if not text:
            raise self._wrap_error(ValueError("Invalid response from LLM service"))
        return text
