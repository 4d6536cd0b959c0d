# src/dealflow/adapters/llm_client.py
from __future__ import annotations

from dataclasses import dataclass, field

import anthropic

from dealflow.adapters.config import config


class LLMClientError(RuntimeError):
    pass


@dataclass
class AnthropicCompletionClient:
    api_key: str
    model: str = "claude-sonnet-4-5-20250929"
    timeout_s: float = 60.0
    max_retries: int = 2
    _client: anthropic.Anthropic = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # the SDK owns retry/backoff for 429 + 5xx
        self._client = anthropic.Anthropic(
            api_key=self.api_key,
            timeout=self.timeout_s,
            max_retries=self.max_retries,
        )

    def complete(
        self,
        *,
        system: str,
        prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise LLMClientError(f"Anthropic request failed: {e}") from e

        parts = [getattr(block, "text", "") for block in response.content]
        return "".join(parts)


def make_completion_client() -> AnthropicCompletionClient | None:
    """Build the configured client, or None when no API key is set."""
    if not config.ai_enabled:
        return None
    return AnthropicCompletionClient(
        api_key=config.ANTHROPIC_API_KEY,
        model=config.AI_MODEL,
        timeout_s=config.AI_TIMEOUT_S,
        max_retries=config.AI_MAX_RETRIES,
    )
