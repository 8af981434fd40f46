"""Quota manager: providers that ran out of request budget sit out for a while.

State lives in memory for the life of the process. A provider marked
exhausted is skipped by new searches until its reset interval has passed,
then it is tried again.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_RESET_SECONDS = 3600.0


@dataclass
class _Exhaustion:
    reason: str
    until: float


class QuotaManager:
    """Tracks providers whose request quota is used up.

    Usage::

        qm = QuotaManager(reset_seconds=3600)
        if qm.can_search("adzuna"):
            ...  # dispatch the adapter
        qm.mark_exhausted("adzuna", "HTTP 429")
    """

    def __init__(
        self,
        reset_seconds: float = DEFAULT_RESET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._reset_seconds = reset_seconds
        self._clock = clock
        self._exhausted: dict[str, _Exhaustion] = {}

    def can_search(self, provider: str) -> bool:
        """Return True unless the provider is inside its exhaustion window."""
        entry = self._exhausted.get(provider)
        if entry is None:
            return True
        if self._clock() >= entry.until:
            del self._exhausted[provider]
            logger.info("Quota pause over for '%s'; provider available again", provider)
            return True
        return False

    def mark_exhausted(self, provider: str, reason: str = "") -> None:
        """Skip the provider until the reset interval has passed."""
        if not self.can_search(provider):
            return
        self._exhausted[provider] = _Exhaustion(reason, self._clock() + self._reset_seconds)
        logger.warning(
            "Provider '%s' exhausted (%s); skipping it for %gs",
            provider, reason or "quota", self._reset_seconds,
        )

    def retry_in(self, provider: str) -> float | None:
        """Seconds until an exhausted provider is tried again; None when available."""
        if self.can_search(provider):
            return None
        return round(self._exhausted[provider].until - self._clock(), 1)

    def exhausted(self) -> dict[str, str]:
        """Currently exhausted providers and the reason each was marked."""
        return {
            name: entry.reason
            for name, entry in list(self._exhausted.items())
            if not self.can_search(name)
        }

    def reset(self) -> None:
        """Clear every exhaustion mark."""
        if self._exhausted:
            logger.info("Clearing exhaustion for: %s", ", ".join(sorted(self._exhausted)))
        self._exhausted.clear()
