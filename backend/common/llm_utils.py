"""Utility functions for interacting with various LLM backends."""

import logging

import openai
from openai import OpenAI

from backend.common.config import Settings
from backend.common.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class LLMClient:
    """Unified client for different OpenAI-compatible LLM backends."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.client = None
        self._initialize_client()

    def _initialize_client(self) -> None:
        """Initialize the appropriate LLM client based on configuration."""
        backend = self.settings.llm_backend.lower()

        if backend == "perplexity":
            api_key = self.settings.perplexity_api_key
            base_url = self.settings.perplexity_base_url
            self.model = self.settings.perplexity_model
        elif backend == "openai":
            api_key = self.settings.openai_api_key
            base_url = self.settings.openai_base_url
            self.model = self.settings.openai_model
        elif backend == "vllm":
            api_key = self.settings.vllm_api_key
            base_url = self.settings.vllm_base_url
            self.model = self.settings.vllm_model
        elif backend == "groq":
            api_key = self.settings.groq_api_key
            base_url = self.settings.groq_base_url
            self.model = self.settings.groq_model
        elif backend == "ollama":
            api_key = "ollama"  # Ollama doesn't require an API key
            base_url = self.settings.ollama_base_url
            self.model = self.settings.ollama_model
        else:
            raise ValueError(f"Unsupported LLM backend: {self.settings.llm_backend}")

        self.backend = backend
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.settings.llm_timeout_seconds,
            max_retries=self.settings.llm_max_retries,
        )
        logger.info("Initialized %s client with model: %s", backend, self.model)

    def complete(self, system_prompt: str, user_content: str) -> str:
        """
        Run a single chat completion and return the first choice's text.

        Args:
            system_prompt: Instructions sent as the system message
            user_content: The transcript, sent as the user message

        Returns:
            The raw message content, or an empty string when the backend
            returned no choices.

        Raises:
            UpstreamUnavailable: On network errors, timeouts and non-2xx
                responses from the backend.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=self.settings.llm_temperature,
            )
        except openai.APIStatusError as e:
            logger.error("LLM backend %s returned HTTP %s: %s", self.backend, e.status_code, e.message)
            raise UpstreamUnavailable(
                f"LLM API error: {e.message}", status_code=e.status_code
            ) from e
        except openai.APIError as e:
            logger.error("LLM backend %s request failed: %s", self.backend, e)
            raise UpstreamUnavailable(f"LLM API request failed: {e}") from e

        if not response.choices:
            logger.warning("LLM backend %s returned no choices", self.backend)
            return ""

        content = response.choices[0].message.content or ""
        logger.debug("LLM response: %s", content)
        return content


def get_llm_client(settings: Settings) -> LLMClient:
    """Build an LLM client for the configured backend."""
    return LLMClient(settings)
