"""OpenAI LLM provider."""

import logging

from jobstream.profile.llm.base import SYSTEM_PROMPT, LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat completions with a system message; low temperature for extraction work."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str:
        return "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1500,
    ) -> str:
        api_key = self._require_api_key()
        openai = self._import_sdk("openai")
        use_model = model or self.default_model

        logger.debug("OpenAI completion (%s, %d prompt chars)", use_model, len(prompt))
        with self._translate_errors(openai, "OpenAIError"):
            response = openai.OpenAI(api_key=api_key, max_retries=2).chat.completions.create(
                model=use_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT if system is None else system},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.1,
                max_tokens=max_tokens,
            )
        return response.choices[0].message.content or ""
