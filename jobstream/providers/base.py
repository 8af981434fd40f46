"""Abstract base class for provider adapters."""

import os
from abc import ABC, abstractmethod

from jobstream.core.schemas import Listing, ProviderId, SearchFilters


class ProviderAdapter(ABC):
    """Contract every listing provider implements.

    Adapters hold no per-search state: ``search`` translates a generic query
    into the provider's request, and maps the response onto ``Listing``.
    Malformed records are skipped; transport and status failures raise
    ``ProviderError``.
    """

    @property
    @abstractmethod
    def provider_id(self) -> ProviderId:
        """Unique identifier for this provider."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable provider name used in status messages."""

    @property
    @abstractmethod
    def env_vars(self) -> tuple[str, ...]:
        """Environment variables that must all be set for this provider."""

    @abstractmethod
    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        """Run one query and return normalized listings in provider order."""

    def is_configured(self) -> bool:
        """True when every required credential is present in the environment."""
        return all(os.environ.get(name) for name in self.env_vars)
