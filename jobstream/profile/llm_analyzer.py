"""LLM-based resume analysis producing a CandidateProfile."""

import logging

from jobstream.core.errors import ProfileExtractionError, ProfileExtractionErrorKind
from jobstream.profile.llm import (
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    get_provider,
    parse_json_object,
)
from jobstream.profile.llm.base import SYSTEM_PROMPT
from jobstream.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)

MIN_RESUME_CHARS = 100
MAX_RESUME_CHARS = 8000

_USER_PROMPT = (
    "Analyze this resume and extract all information relevant for job matching. "
    "Look beyond job titles to what this person actually does:\n\n"
)


def analyze_resume(
    resume_text: str,
    provider: LLMProvider | str = "openai",
    model: str | None = None,
) -> CandidateProfile:
    """Analyze resume text with an LLM and return a CandidateProfile.

    Args:
        resume_text: Plain text extracted from a resume.
        provider: LLMProvider instance or registered provider name.
        model: Model override; None uses the provider default.

    Raises:
        ProfileExtractionError: ``too_short`` for under 100 characters,
            ``rate_limited`` when the service throttles, and
            ``service_unavailable`` for every other failure.
    """
    text = resume_text.strip()
    if len(text) < MIN_RESUME_CHARS:
        raise ProfileExtractionError(
            ProfileExtractionErrorKind.TOO_SHORT,
            f"Resume text is too short ({len(text)} characters, need {MIN_RESUME_CHARS}).",
        )
    if len(text) > MAX_RESUME_CHARS:
        text = text[:MAX_RESUME_CHARS] + "..."

    llm = get_provider(provider) if isinstance(provider, str) else provider

    logger.info("Analyzing resume (%d chars) with %s", len(text), llm.provider_id)
    try:
        raw = llm.complete(_USER_PROMPT + text, model=model, system=SYSTEM_PROMPT)
    except LLMRateLimitError as e:
        raise ProfileExtractionError(ProfileExtractionErrorKind.RATE_LIMITED) from e
    except (LLMError, ValueError) as e:
        logger.warning("Resume analysis failed: %s", e)
        raise ProfileExtractionError(ProfileExtractionErrorKind.SERVICE_UNAVAILABLE) from e

    try:
        profile = CandidateProfile.model_validate(parse_json_object(raw))
    except ValueError as e:
        logger.warning("Unusable resume analysis response: %s", e)
        raise ProfileExtractionError(ProfileExtractionErrorKind.SERVICE_UNAVAILABLE) from e

    logger.info(
        "Extracted profile: %d skills, %d roles, %d industries, seniority=%s",
        len(profile.technical_skills),
        len(profile.work_experience),
        len(profile.industries),
        profile.seniority_level,
    )
    return profile
