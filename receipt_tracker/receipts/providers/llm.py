"""
LLM provider: OpenAI chat completions in JSON mode.
"""
from __future__ import annotations

import logging
from typing import Optional

from openai import OpenAI, OpenAIError

from receipt_tracker.receipts.errors import LlmProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)


class LlmProvider:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        timeout: float = 60.0,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout)
        self.client = client
        if self.client is None:
            logger.warning("OPENAI_API_KEY not configured. LLM service will not work.")

    @classmethod
    def from_settings(cls, settings) -> "LlmProvider":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.LLM_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )

    def is_available(self) -> bool:
        return self.client is not None

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Send *prompt* and return the raw JSON completion text."""
        if self.client is None:
            raise ProviderNotConfigured(
                "LLM service is not configured. Please set OPENAI_API_KEY."
            )
        if not prompt or not prompt.strip():
            raise LlmProviderError("Cannot parse empty text")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info("Calling OpenAI API with model: %s", self.model)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("OpenAI API call failed: %s", e)
            raise LlmProviderError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LlmProviderError("No response from OpenAI")
        logger.info("OpenAI API call successful")
        logger.debug("LLM response: %s", content)
        return content
