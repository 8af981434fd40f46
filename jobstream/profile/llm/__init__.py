"""LLM provider registry with lazy loading.

Usage:
    from jobstream.profile.llm import get_provider

    provider = get_provider("openai")
    raw = provider.complete(resume_text)
"""

from __future__ import annotations

import importlib

from jobstream.profile.llm.base import (
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    LLMUnavailableError,
    parse_json_object,
)

__all__ = [
    "LLMError",
    "LLMProvider",
    "LLMRateLimitError",
    "LLMUnavailableError",
    "available_providers",
    "get_provider",
    "parse_json_object",
]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("jobstream.profile.llm.anthropic", "AnthropicProvider"),
    "openai": ("jobstream.profile.llm.openai", "OpenAIProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
