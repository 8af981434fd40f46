"""Fan-out orchestrator: one streamed search session across all providers.

Session lifecycle:
  1. prepare_search   validate profile, pick configured adapters (pre-stream)
  2. Dispatching      one task per adapter; all of an adapter's queries share
                      its single timeout budget
  3. Settling         first-settled-first-emitted; exactly one outcome event
                      per dispatched adapter
  4. Deadline         adapters still fetching are cancelled, not awaited;
                      batches already fetched are delivered even if scoring
                      has not finished
  5. Finalizing       one terminal search_complete with the gathered listings

Only ``prepare_search`` raises to the caller. Once the stream is open every
failure becomes an event, and the emitter guarantees a terminal frame.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum

from jobstream.core.config import Settings
from jobstream.core.errors import (
    ConfigurationError,
    ProviderError,
    ProviderErrorKind,
    SearchValidationError,
    user_message,
)
from jobstream.core.schemas import (
    Listing,
    ProviderState,
    ProviderStatus,
    SearchFilters,
)
from jobstream.pipeline.llm_scorer import MatchScorer
from jobstream.pipeline.matcher import DeduplicationFilter, build_filter_chain, run_filter_chain
from jobstream.pipeline.quota_manager import QuotaManager
from jobstream.profile.queries import generate_queries
from jobstream.profile.schema import CandidateProfile
from jobstream.providers.base import ProviderAdapter
from jobstream.stream.emitter import StreamEmitter
from jobstream.stream.events import (
    JobsFound,
    ScraperComplete,
    ScraperError,
    ScraperStart,
    SearchComplete,
    SearchStarted,
    UserMessage,
)

logger = logging.getLogger(__name__)

# Errors after which an adapter's remaining queries are not attempted.
_STOP_KINDS = (
    ProviderErrorKind.UNAUTHORIZED,
    ProviderErrorKind.RATE_LIMITED,
    ProviderErrorKind.TIMEOUT,
)


class SessionState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    FINALIZING = "finalizing"
    TERMINATED = "terminated"


@dataclass
class AdapterOutcome:
    """What one adapter task produced.

    The task fills this in as it goes. ``fetched`` is set once the provider
    calls are done and the batch is filtered, before scoring starts.
    """

    adapter: ProviderAdapter
    listings: list[Listing] = field(default_factory=list)
    error: ProviderError | None = None
    elapsed: float = 0.0
    fetched: bool = False


@dataclass
class SearchSession:
    """Request-scoped state for one streamed search."""

    profile: CandidateProfile
    filters: SearchFilters
    queries: list[str]
    adapters: list[ProviderAdapter]
    statuses: dict[str, ProviderStatus]
    deadline_seconds: float
    state: SessionState = SessionState.IDLE
    listings: list[Listing] = field(default_factory=list)
    running_total: int = 0
    deadline_reached: bool = False
    started_at: float = field(default_factory=time.monotonic)
    dedup: DeduplicationFilter = field(default_factory=DeduplicationFilter)

    def elapsed(self) -> float:
        return round(time.monotonic() - self.started_at, 2)

    def remaining(self) -> float:
        return self.deadline_seconds - (time.monotonic() - self.started_at)


def prepare_search(
    profile: CandidateProfile,
    filters: SearchFilters | None,
    adapters: list[ProviderAdapter],
    settings: Settings,
    quota: QuotaManager | None = None,
) -> SearchSession:
    """Validate a search request before any stream is opened.

    Adapters without credentials, and adapters the quota manager has paused,
    are reported in the session statuses but not dispatched.

    Raises:
        SearchValidationError: The profile has no skills, experience or responsibilities.
        ConfigurationError: No adapter is configured and available.
    """
    if not profile.has_signal():
        msg = "Profile must include at least one technical skill, work experience entry or responsibility."
        raise SearchValidationError(msg)

    statuses: dict[str, ProviderStatus] = {}
    available: list[ProviderAdapter] = []
    exhausted = 0
    for adapter in adapters:
        name = adapter.provider_id.value
        if not adapter.is_configured():
            logger.info("%s not configured (needs %s)", adapter.display_name, ", ".join(adapter.env_vars))
            statuses[name] = ProviderStatus(
                provider=name,
                state=ProviderState.NOT_CONFIGURED,
                message="Missing credentials",
            )
        elif quota is not None and not quota.can_search(name):
            retry = quota.retry_in(name) or 0
            logger.info("%s skipped: request quota used up (retry in %gs)", adapter.display_name, retry)
            exhausted += 1
            statuses[name] = ProviderStatus(
                provider=name,
                state=ProviderState.EXHAUSTED,
                message=f"Request quota used up; retrying in {retry:g}s",
            )
        else:
            available.append(adapter)
            statuses[name] = ProviderStatus(provider=name)

    if not available:
        if exhausted:
            msg = "All configured job providers have used up their request quota. Try again later."
        else:
            msg = "No job providers are configured. Set at least one provider API key."
        raise ConfigurationError(msg)

    queries = generate_queries(profile, settings.search.max_queries)
    if not queries:
        msg = "Could not derive any search queries from the profile."
        raise SearchValidationError(msg)

    return SearchSession(
        profile=profile,
        filters=filters or SearchFilters(),
        queries=queries,
        adapters=available,
        statuses=statuses,
        deadline_seconds=settings.search.deadline_seconds,
    )


def _drain(task: asyncio.Task) -> None:
    """Retrieve the result of an abandoned task so its exception is not reported."""
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Abandoned task %s ended with %r", task.get_name(), task.exception())


class Orchestrator:
    """Runs search sessions against a set of adapters.

    Args:
        settings: Loaded settings (per-provider timeouts, page size).
        scorer: Match scorer applied to each adapter's batch.
        quota: Process-wide quota manager; rate-limited providers are marked
            exhausted in it. None disables quota tracking.
    """

    def __init__(
        self,
        settings: Settings,
        scorer: MatchScorer | None = None,
        quota: QuotaManager | None = None,
    ) -> None:
        self._settings = settings
        self._scorer = scorer or MatchScorer(settings.scoring)
        self._quota = quota

    async def stream(self, session: SearchSession) -> AsyncIterator[bytes]:
        """Run ``session`` and yield its frames. Closing the iterator cancels the run."""
        emitter = StreamEmitter()
        task = asyncio.create_task(self.run(session, emitter), name="search-session")
        try:
            async for frame in emitter.frames():
                yield frame
            await task
        finally:
            if not task.done():
                logger.info("Client went away; cancelling search session")
                task.cancel()
                task.add_done_callback(_drain)

    async def run(self, session: SearchSession, emitter: StreamEmitter) -> None:
        """Drive one session to exactly one terminal event, then close the emitter."""
        tasks: dict[asyncio.Task, AdapterOutcome] = {}
        try:
            await self._dispatch(session, emitter, tasks)
            await self._collect(session, emitter, tasks)
            await self._finalize(session, emitter)
        except Exception:
            logger.exception("Search session failed after the stream opened")
            await emitter.fail("The search failed unexpectedly. Please try again.")
        finally:
            for task in tasks:
                if not task.done() and not task.cancelling():
                    task.cancel()
                    task.add_done_callback(_drain)
            session.state = SessionState.TERMINATED
            await emitter.close()

    async def _dispatch(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        tasks: dict[asyncio.Task, AdapterOutcome],
    ) -> None:
        session.state = SessionState.DISPATCHING
        names = [a.display_name for a in session.adapters]
        await emitter.emit(SearchStarted(
            message=f"Searching {len(names)} job providers with {len(session.queries)} queries...",
            providers=[a.provider_id.value for a in session.adapters],
        ))

        for adapter in session.adapters:
            logger.info("Dispatching %s", adapter.display_name)
            await emitter.emit(ScraperStart(provider=adapter.provider_id.value))
            outcome = AdapterOutcome(adapter=adapter)
            task = asyncio.create_task(
                self._run_adapter(session, outcome), name=adapter.provider_id.value,
            )
            tasks[task] = outcome

    async def _collect(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        tasks: dict[asyncio.Task, AdapterOutcome],
    ) -> None:
        pending = set(tasks)
        while pending:
            remaining = session.remaining()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                await self._settle(session, emitter, tasks[task], task)

        if pending:
            await self._expire(session, emitter, tasks, pending)

    async def _expire(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        tasks: dict[asyncio.Task, AdapterOutcome],
        pending: set[asyncio.Task],
    ) -> None:
        """Settle what the deadline caught: fetched batches are kept, fetches are stopped."""
        finished = [t for t in pending if t.done()]
        running = sorted(
            (t for t in pending if not t.done()),
            key=lambda t: tasks[t].adapter.provider_id.value,
        )
        for task in running:
            task.cancel()
            task.add_done_callback(_drain)

        for task in finished:
            await self._settle(session, emitter, tasks[task], task)

        stopped: list[AdapterOutcome] = []
        unscored = 0
        for task in running:
            outcome = tasks[task]
            if not outcome.fetched:
                stopped.append(outcome)
                continue
            logger.warning(
                "%s: scoring stopped at the deadline; delivering %d listings unscored",
                outcome.adapter.display_name, len(outcome.listings),
            )
            unscored += await self._deliver(session, emitter, outcome)
            session.statuses[outcome.adapter.provider_id.value].message = (
                "Delivered without match scores at the time limit"
            )

        if stopped:
            session.deadline_reached = True
            logger.warning(
                "Search deadline (%gs) reached with %d providers pending: %s",
                session.deadline_seconds, len(stopped),
                ", ".join(o.adapter.display_name for o in stopped),
            )
            for outcome in stopped:
                adapter = outcome.adapter
                status = session.statuses[adapter.provider_id.value]
                status.state = ProviderState.TIMED_OUT
                status.elapsed_seconds = session.elapsed()
                status.message = "Search deadline reached"
                await emitter.emit(ScraperError(
                    provider=adapter.provider_id.value,
                    message=f"{adapter.display_name}: still searching when the time limit was reached.",
                ))
            await emitter.emit(UserMessage(
                title="Search time limit reached",
                message=(
                    f"Some providers did not finish within {session.deadline_seconds:g} seconds. "
                    "Showing the listings found so far."
                ),
                severity="warning",
            ))

        if unscored:
            await emitter.emit(UserMessage(
                title="Match scores incomplete",
                message=(
                    f"{unscored} listing{'s are' if unscored != 1 else ' is'} shown without a "
                    "match score because scoring ran past the time limit."
                ),
                severity="info",
            ))

    async def _run_adapter(self, session: SearchSession, outcome: AdapterOutcome) -> None:
        """Run one adapter's queries within its timeout budget, then filter and score.

        The budget covers all of the adapter's queries together. Succeeds when
        at least one query succeeded; otherwise ``outcome.error`` carries the
        first error. Never raises ProviderError.
        """
        adapter = outcome.adapter
        config = self._settings.provider(adapter.provider_id.value)
        queries = session.queries[: self._settings.search.queries_per_provider]
        started = time.monotonic()

        listings: list[Listing] = []
        first_error: ProviderError | None = None
        succeeded = False
        for done_count, query in enumerate(queries):
            budget = config.timeout_seconds - (time.monotonic() - started)
            if budget <= 0:
                logger.info(
                    "%s: timeout budget spent after %d of %d queries",
                    adapter.display_name, done_count, len(queries),
                )
                first_error = first_error or ProviderError(
                    adapter.display_name,
                    ProviderErrorKind.TIMEOUT,
                    f"no response within {config.timeout_seconds:g}s",
                )
                break
            try:
                batch = await asyncio.wait_for(adapter.search(query, session.filters), budget)
            except asyncio.TimeoutError:
                error = ProviderError(
                    adapter.display_name,
                    ProviderErrorKind.TIMEOUT,
                    f"no response within {config.timeout_seconds:g}s",
                )
            except ProviderError as e:
                error = e
            else:
                logger.debug("%s: '%s' returned %d listings", adapter.display_name, query, len(batch))
                listings.extend(batch)
                succeeded = True
                continue

            logger.info("%s: query '%s' failed: %s", adapter.display_name, query, error)
            first_error = first_error or error
            if error.kind in _STOP_KINDS:
                break

        outcome.elapsed = round(time.monotonic() - started, 2)
        if not succeeded:
            outcome.error = first_error
            return

        listings = run_filter_chain(listings, build_filter_chain(session.filters))
        outcome.listings = DeduplicationFilter()(listings)
        outcome.fetched = True
        outcome.listings = await self._scorer.score_batch(outcome.listings, session.profile)

    async def _settle(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        outcome: AdapterOutcome,
        task: asyncio.Task,
    ) -> None:
        """Apply one settled adapter task and emit its single outcome event."""
        adapter = outcome.adapter
        try:
            task.result()
        except Exception as e:
            if outcome.fetched:
                logger.exception("%s: scoring crashed; delivering the batch unscored", adapter.display_name)
            else:
                logger.exception("%s crashed", adapter.display_name)
                outcome.error = ProviderError(adapter.display_name, ProviderErrorKind.PARSE, repr(e))
                outcome.elapsed = outcome.elapsed or session.elapsed()

        if outcome.error is not None:
            await self._report_failure(session, emitter, outcome.adapter, outcome.error, outcome.elapsed)
        else:
            await self._deliver(session, emitter, outcome)

    async def _report_failure(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        adapter: ProviderAdapter,
        error: ProviderError,
        elapsed: float,
    ) -> None:
        name = adapter.provider_id.value
        kind = error.kind
        status = session.statuses[name]
        status.elapsed_seconds = elapsed
        status.state = ProviderState.TIMED_OUT if kind is ProviderErrorKind.TIMEOUT else ProviderState.FAILED
        status.message = user_message(kind)

        if kind is ProviderErrorKind.RATE_LIMITED and self._quota is not None:
            self._quota.mark_exhausted(name, error.detail)

        logger.info("%s settled: %s in %.2fs", adapter.display_name, status.state.value, elapsed)
        await emitter.emit(ScraperError(
            provider=name, message=f"{adapter.display_name}: {user_message(kind)}",
        ))

    async def _deliver(
        self,
        session: SearchSession,
        emitter: StreamEmitter,
        outcome: AdapterOutcome,
    ) -> int:
        """Add a batch to the session and emit it. Returns how many listings were new."""
        adapter = outcome.adapter
        name = adapter.provider_id.value
        status = session.statuses[name]

        fresh = session.dedup(outcome.listings)
        session.listings.extend(fresh)
        session.running_total += len(fresh)
        status.state = ProviderState.SUCCEEDED
        status.count = len(fresh)
        status.elapsed_seconds = outcome.elapsed
        logger.info(
            "%s settled: %d listings (%d after dedup) in %.2fs",
            adapter.display_name, len(outcome.listings), len(fresh), outcome.elapsed,
        )

        if fresh:
            await emitter.emit(JobsFound(
                provider=name,
                listings=fresh,
                running_total=session.running_total,
                elapsed_seconds=session.elapsed(),
            ))
        else:
            await emitter.emit(ScraperComplete(provider=name, count=0))
        return len(fresh)

    async def _finalize(self, session: SearchSession, emitter: StreamEmitter) -> None:
        session.state = SessionState.FINALIZING
        ranked = sorted(session.listings, key=lambda l: l.match_percentage or 0, reverse=True)
        page_size = self._settings.search.initial_page_size
        total = len(ranked)
        statuses = list(session.statuses.values())
        succeeded = sum(1 for s in statuses if s.state is ProviderState.SUCCEEDED)

        if total == 0:
            await emitter.emit(UserMessage(
                title="No listings found",
                message=_no_results_hint(session, succeeded),
                severity="info" if succeeded else "warning",
            ))

        summary = _summary(total, succeeded, len(session.adapters), session)
        logger.info(summary)
        await emitter.emit(SearchComplete(
            listings=ranked[:page_size],
            remaining_listings=ranked[page_size:],
            total_count=total,
            elapsed_seconds=session.elapsed(),
            summary=summary,
            providers=statuses,
        ))


def _summary(total: int, succeeded: int, dispatched: int, session: SearchSession) -> str:
    elapsed = session.elapsed()
    if total:
        text = (
            f"Found {total} listing{'s' if total != 1 else ''} from {succeeded} of "
            f"{dispatched} providers in {elapsed:.1f}s."
        )
    elif succeeded:
        text = f"No listings matched your profile across {succeeded} providers."
    else:
        text = "No listings found: none of the providers returned results."
    if session.deadline_reached:
        text += " Some providers were stopped at the time limit."
    return text


def _no_results_hint(session: SearchSession, succeeded: int) -> str:
    if not succeeded:
        return "All job providers failed or timed out. Please try again in a few minutes."
    if not session.filters.is_empty():
        return "Try relaxing your filters or adding more skills to your profile."
    return "Try adding more skills or work experience to your profile."
