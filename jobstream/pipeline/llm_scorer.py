"""LLM-assisted match scoring, with the rule-based scorer as fallback."""

import asyncio
import logging
from typing import Any

from jobstream.core.config import ScoringConfig
from jobstream.core.errors import ScoringError
from jobstream.core.schemas import Listing, MatchResult
from jobstream.pipeline.scorer import score_listing
from jobstream.profile.llm import LLMError, LLMProvider, get_provider, parse_json_object
from jobstream.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)

_SCORING_SYSTEM_PROMPT = (
    "You are a job matching expert evaluating candidate fit.\n\n"
    "Missing requirements:\n"
    "  - Only list things the JOB REQUIRES that the CANDIDATE DOES NOT HAVE\n"
    "  - Do not list candidate skills the job does not mention\n"
    '  - Do not list "nice to have" or "preferred" requirements\n'
    "  - If nothing is missing, return an empty list and score 100\n\n"
    "Be generous with scores for broad alignment but strict about what is "
    "actually missing.\n\n"
    "Return ONLY a JSON object (no markdown, no explanation):\n"
    '{"matchPercentage": <integer 0-100>,\n'
    ' "matchedTechnicalSkills": [<candidate skills the job requires>],\n'
    ' "matchedSoftSkills": [<candidate soft skills the job needs>],\n'
    ' "matchedExperience": [<candidate experience aligned with the job>],\n'
    ' "missingRequirements": [<job requirements the candidate lacks>],\n'
    ' "reasoning": "<1-2 sentence explanation>",\n'
    ' "industryMatch": <integer 0-100>,\n'
    ' "seniorityMatch": <integer 0-100>,\n'
    ' "growthPotential": "low" | "medium" | "high"}'
)


def _joined(items: list[str], limit: int) -> str:
    return ", ".join(items[:limit]) if items else "None"


def _build_user_prompt(listing: Listing, profile: CandidateProfile, description_chars: int) -> str:
    """Assemble the user prompt from profile and listing data."""
    description = listing.description[:description_chars] or "No description available"
    job_section = (
        "JOB POSTING\n"
        f"Title: {listing.title}\n"
        f"Company: {listing.company}\n"
        f"Location: {listing.location}\n"
        f"Description: {description}\n"
    )
    profile_section = (
        "CANDIDATE PROFILE\n"
        f"Technical skills: {_joined(profile.technical_skills, 15)}\n"
        f"Work experience: {_joined(profile.work_experience, 8)}\n"
        f"Industries: {_joined(profile.industries, 5)}\n"
        f"Responsibilities: {_joined(profile.responsibilities, 8)}\n"
        f"Qualifications: {_joined(profile.qualifications, 5)}\n"
        f"Education: {_joined(profile.education, 5)}\n"
        f"Seniority: {profile.seniority_level}\n"
    )
    return f"{job_section}\n{profile_section}"


def _clamp(value: Any) -> int | None:
    if value is None:
        return None
    return max(0, min(100, round(float(value))))


def _parse_llm_match(raw_text: str) -> MatchResult:
    """Parse an LLM JSON response into a MatchResult.

    Handles markdown-wrapped JSON. Clamps numbers to 0-100.
    Raises ValueError on malformed response.
    """
    data = parse_json_object(raw_text)
    if "matchPercentage" not in data:
        msg = "LLM response missing 'matchPercentage' field"
        raise ValueError(msg)

    missing = [m for m in data.get("missingRequirements") or [] if str(m).lower() != "none"]
    growth = str(data.get("growthPotential") or "medium").lower()

    return MatchResult(
        match_percentage=_clamp(data["matchPercentage"]) or 0,
        industry_match=_clamp(data.get("industryMatch")),
        seniority_match=_clamp(data.get("seniorityMatch")),
        growth_potential=growth if growth in ("low", "medium", "high") else "medium",
        matched_technical_skills=[str(s) for s in data.get("matchedTechnicalSkills") or []],
        matched_soft_skills=[str(s) for s in data.get("matchedSoftSkills") or []],
        matched_experience=[str(s) for s in data.get("matchedExperience") or []],
        missing_requirements=[str(m) for m in missing],
        reasoning=str(data.get("reasoning", "")),
    )


def score_listing_llm(
    listing: Listing,
    profile: CandidateProfile,
    config: ScoringConfig,
    provider: LLMProvider,
) -> MatchResult:
    """Score a single listing with the LLM. Blocking.

    Raises:
        ScoringError: On any provider or response-format failure.
    """
    try:
        prompt = _build_user_prompt(listing, profile, config.description_chars)
        raw = provider.complete(
            prompt, model=config.llm_model, system=_SCORING_SYSTEM_PROMPT, max_tokens=600,
        )
        return _parse_llm_match(raw)
    except (LLMError, ValueError, TypeError) as e:
        msg = f"LLM scoring failed for '{listing.title}': {e}"
        raise ScoringError(msg) from e


class MatchScorer:
    """Best-effort scorer the orchestrator applies to every delivered batch.

    Order of attempts per listing: LLM (when enabled and configured), then
    the rule-based scorer, then the listing is returned unscored. A listing
    is never dropped.
    """

    def __init__(self, config: ScoringConfig | None = None, provider: LLMProvider | None = None) -> None:
        self._config = config or ScoringConfig()
        self._provider = provider
        if self._provider is None and self._config.llm_enabled:
            candidate = get_provider(self._config.llm_provider)
            if candidate.is_configured():
                self._provider = candidate
            else:
                logger.warning(
                    "LLM scoring enabled but %s is not set; using rule-based scoring",
                    candidate.env_var,
                )

    @property
    def uses_llm(self) -> bool:
        return self._config.llm_enabled and self._provider is not None

    async def score(self, listing: Listing, profile: CandidateProfile) -> Listing:
        """Return ``listing`` carrying a match breakdown, or unchanged on failure."""
        provider = self._provider
        if self._config.llm_enabled and provider is not None:
            try:
                match = await asyncio.wait_for(
                    asyncio.to_thread(
                        score_listing_llm, listing, profile, self._config, provider,
                    ),
                    self._config.timeout_seconds,
                )
                return listing.with_match(match)
            except ScoringError as e:
                logger.warning("%s; falling back to rule-based score", e)
            except asyncio.TimeoutError:
                logger.warning(
                    "LLM scoring timed out for '%s'; falling back to rule-based score",
                    listing.title,
                )

        try:
            return listing.with_match(score_listing(listing, profile))
        except (ValueError, TypeError, ZeroDivisionError):
            logger.warning("Scoring failed for '%s'; delivering unscored", listing.title,
                           exc_info=True)
            return listing

    async def score_batch(self, listings: list[Listing], profile: CandidateProfile) -> list[Listing]:
        """Score a batch concurrently, preserving the batch order."""
        if not self.uses_llm:
            return [await self.score(l, profile) for l in listings]

        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def bounded(listing: Listing) -> Listing:
            async with semaphore:
                return await self.score(listing, profile)

        return list(await asyncio.gather(*(bounded(l) for l in listings)))
