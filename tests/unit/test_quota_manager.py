"""Tests for the provider quota manager."""

import logging

import pytest

from jobstream.pipeline.quota_manager import QuotaManager


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quota(clock: FakeClock) -> QuotaManager:
    return QuotaManager(reset_seconds=60, clock=clock)


class TestQuotaManager:
    def test_fresh_provider_can_search(self, quota: QuotaManager) -> None:
        assert quota.can_search("reed")
        assert quota.retry_in("reed") is None
        assert quota.exhausted() == {}

    def test_marked_provider_paused(self, quota: QuotaManager, clock: FakeClock) -> None:
        quota.mark_exhausted("reed", "HTTP 429")
        assert not quota.can_search("reed")
        clock.now += 20
        assert quota.retry_in("reed") == 40
        assert quota.exhausted() == {"reed": "HTTP 429"}

    def test_pause_ends_after_reset_interval(
        self, quota: QuotaManager, clock: FakeClock, caplog: pytest.LogCaptureFixture,
    ) -> None:
        quota.mark_exhausted("reed")
        clock.now += 60
        with caplog.at_level(logging.INFO):
            assert quota.can_search("reed")
        assert "available again" in caplog.text
        assert quota.exhausted() == {}

    def test_marking_twice_keeps_first_window(self, quota: QuotaManager, clock: FakeClock) -> None:
        quota.mark_exhausted("reed", "HTTP 429")
        clock.now += 30
        quota.mark_exhausted("reed", "HTTP 402")
        assert quota.retry_in("reed") == 30
        assert quota.exhausted() == {"reed": "HTTP 429"}

    def test_providers_tracked_separately(self, quota: QuotaManager) -> None:
        quota.mark_exhausted("adzuna")
        assert not quota.can_search("adzuna")
        assert quota.can_search("reed")

    def test_reset_clears_everything(self, quota: QuotaManager) -> None:
        quota.mark_exhausted("adzuna")
        quota.mark_exhausted("reed")
        quota.reset()
        assert quota.can_search("adzuna")
        assert quota.can_search("reed")

    def test_mark_logs_warning(self, quota: QuotaManager, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            quota.mark_exhausted("reed", "HTTP 429")
        assert "Provider 'reed' exhausted (HTTP 429); skipping it for 60s" in caplog.text
