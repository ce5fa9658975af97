"""OpenAI LLM client adapter."""

from typing import Any

from openai import AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient


class OpenAIClient(AbstractLLMClient):
    """Client for calling OpenAI chat completions and returning the reply text.

    Uses the official OpenAI Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        max_retries: int = 0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication. Without one no SDK
                client is built and every call fails with RuntimeError.
            model: Model name (e.g., "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
            max_retries: SDK-level retries on transient failures.
        """
        self.client: AsyncOpenAI | None = None
        if api_key:
            self.client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout_seconds,
                max_retries=max_retries,
            )
        self.model = model

    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        """Send the prompt as a single user message and return the reply.

        Args:
            prompt: User message to send to the model.
            **kwargs: Provider options (temperature, max_tokens, top_p, etc.).

        Returns:
            str: Reply text from the first choice.

        Raises:
            RuntimeError: If no API key is configured or the API call fails.
                Also raised when the reply is empty.
        """
        if self.client is None:
            raise RuntimeError("LLM API key not configured")

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }

        allowed_params = {
            "temperature",
            "max_tokens",
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {str(exc)}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise RuntimeError("LLM returned empty response")

        return content.strip()
