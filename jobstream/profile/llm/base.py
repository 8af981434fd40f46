"""Abstract base class for LLM providers and shared logic."""

import importlib
import json
import os
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

SYSTEM_PROMPT = (
    "You are an expert resume analyzer. Extract every job-relevant signal from "
    "the resume text provided, looking beyond formal job titles to what the "
    "person actually did.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation) with these fields:\n"
    "- technicalSkills (list[str]): tools, software, languages, platforms\n"
    "- softSkills (list[str]): leadership, collaboration, communication\n"
    "- workExperience (list[str]): job titles and roles performed\n"
    "- education (list[str]): degrees, certifications, courses\n"
    "- qualifications (list[str]): specializations and experience levels\n"
    "- industries (list[str]): industries worked in\n"
    "- responsibilities (list[str]): key responsibilities and functions\n"
    "- achievements (list[str]): key accomplishments\n"
    '- seniorityLevel (string): one of "entry", "mid", "senior", "lead", "executive"'
)


class LLMError(Exception):
    """An LLM call failed."""


class LLMRateLimitError(LLMError):
    """The LLM service rejected the call for rate limiting."""


class LLMUnavailableError(LLMError):
    """The LLM service could not be reached or returned a server error."""


def strip_code_fence(raw_text: str) -> str:
    """Remove a markdown code fence (```json ... ```) around a response."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    return re.sub(r"\n?```\s*$", "", cleaned)


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse an LLM response into a JSON object.

    Handles markdown-wrapped JSON and plain JSON.

    Raises:
        ValueError: If the text is not a JSON object.
    """
    try:
        data = json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e
    if not isinstance(data, dict):
        msg = "LLM response is not a JSON object"
        raise ValueError(msg)
    return data


class LLMProvider(ABC):
    """Base class that every LLM provider must implement."""

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int = 1500,
    ) -> str:
        """Send a prompt to the LLM and return raw response text.

        Blocking; async callers run it in a worker thread.

        Args:
            prompt: User message content.
            model: Override the provider's default model. None uses default.
            system: Override the system prompt. None falls back to SYSTEM_PROMPT.
            max_tokens: Upper bound on the response length.

        Raises:
            ValueError: If the API key is not configured.
            LLMRateLimitError: On a rate-limit response.
            LLMUnavailableError: On connection failures and server errors.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    def is_configured(self) -> bool:
        return self.env_var is None or bool(os.environ.get(self.env_var))

    def _require_api_key(self) -> str:
        api_key = os.environ.get(self.env_var or "")
        if not api_key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return api_key

    def _import_sdk(self, package: str) -> Any:
        """Import the vendor SDK on first use; it is an optional extra."""
        try:
            return importlib.import_module(package)
        except ImportError:
            msg = (
                f"{package} is required for LLM calls. "
                f"Install with: pip install 'jobstream[{package}]'"
            )
            raise ImportError(msg) from None

    @contextmanager
    def _translate_errors(self, sdk: Any, base_error: str) -> Iterator[None]:
        """Map vendor SDK exceptions onto the LLMError hierarchy."""
        try:
            yield
        except sdk.RateLimitError as e:
            raise LLMRateLimitError(str(e)) from e
        except (sdk.APIConnectionError, sdk.InternalServerError) as e:
            raise LLMUnavailableError(str(e)) from e
        except getattr(sdk, base_error) as e:
            raise LLMError(str(e)) from e
