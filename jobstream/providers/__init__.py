"""Provider adapter registry with lazy loading.

Usage:
    from jobstream.providers import build_adapters

    async with httpx.AsyncClient() as client:
        adapters = build_adapters(client, settings)
"""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING, Any

from jobstream.providers.base import ProviderAdapter

if TYPE_CHECKING:
    import httpx

    from jobstream.core.config import Settings
    from jobstream.pipeline.quota_manager import QuotaManager

__all__ = [
    "ProviderAdapter",
    "available_adapters",
    "build_adapters",
    "get_adapter",
    "provider_status_report",
]

logger = logging.getLogger(__name__)

# Lazy registry: maps provider id → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "theirstack": ("jobstream.providers.theirstack", "TheirstackAdapter"),
    "adzuna": ("jobstream.providers.adzuna", "AdzunaAdapter"),
    "themuse": ("jobstream.providers.themuse", "TheMuseAdapter"),
    "reed": ("jobstream.providers.reed", "ReedAdapter"),
    "jsearch": ("jobstream.providers.jsearch", "JSearchAdapter"),
    "jobs_api": ("jobstream.providers.jobs_api", "JobsApiAdapter"),
}


def get_adapter(name: str, client: httpx.AsyncClient, results_per_page: int = 30) -> ProviderAdapter:
    """Instantiate an adapter by provider id.

    Raises:
        ValueError: If the provider id is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(client, results_per_page=results_per_page)  # type: ignore[no-any-return]


def available_adapters() -> list[str]:
    """Return sorted list of registered provider ids."""
    return sorted(_REGISTRY)


def build_adapters(client: httpx.AsyncClient, settings: Settings) -> list[ProviderAdapter]:
    """Instantiate every enabled adapter listed in settings, in configured order.

    Unknown ids are logged and skipped. Credential checks are left to the
    orchestrator so it can report unconfigured providers.
    """
    adapters: list[ProviderAdapter] = []
    for name in settings.search.providers:
        if name not in _REGISTRY:
            logger.warning("Ignoring unknown provider '%s' in config", name)
            continue
        config = settings.provider(name)
        if not config.enabled:
            logger.debug("Provider '%s' disabled in config", name)
            continue
        adapters.append(get_adapter(name, client, config.results_per_page))
    return adapters


def provider_status_report(
    adapters: list[ProviderAdapter], quota: QuotaManager | None = None,
) -> list[dict[str, Any]]:
    """Configured flag and required env var names per adapter. Never the values.

    With a quota manager, providers paused for a used-up quota are flagged
    ``exhausted`` along with the seconds until they are tried again.
    """
    report = []
    for adapter in adapters:
        name = adapter.provider_id.value
        retry = quota.retry_in(name) if quota is not None else None
        report.append({
            "provider": name,
            "name": adapter.display_name,
            "configured": adapter.is_configured(),
            "envVars": list(adapter.env_vars),
            "exhausted": retry is not None,
            "retryInSeconds": retry,
        })
    return report
