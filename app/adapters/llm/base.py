from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that answer a prompt with plain text."""

	model: str

	@abstractmethod
	async def generate_text(self, prompt: str, **kwargs: Any) -> str:
		"""Generate a text completion for the prompt.

		Args:
			prompt: User message to send to the model.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			str: The model's reply.

		Raises:
			RuntimeError: If the provider call fails or returns no content.
		"""
		...
