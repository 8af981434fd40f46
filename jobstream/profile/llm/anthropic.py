"""Anthropic Claude LLM provider."""

import logging

from jobstream.profile.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Messages API; the system prompt travels as a top-level parameter."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1500,
    ) -> str:
        api_key = self._require_api_key()
        anthropic = self._import_sdk("anthropic")
        use_model = model or self.default_model

        logger.debug("Anthropic completion (%s, %d prompt chars)", use_model, len(prompt))
        with self._translate_errors(anthropic, "AnthropicError"):
            message = anthropic.Anthropic(api_key=api_key).messages.create(
                model=use_model,
                max_tokens=max_tokens,
                system=SYSTEM_PROMPT if system is None else system,
                messages=[{"role": "user", "content": prompt}],
            )
        return "".join(getattr(block, "text", "") for block in message.content)
