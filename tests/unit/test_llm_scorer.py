"""Tests for LLM-assisted match scoring and the rule-based fallback."""

import json
import time
from unittest.mock import MagicMock

import pytest

from jobstream.core.config import ScoringConfig
from jobstream.core.errors import ScoringError
from jobstream.core.schemas import Listing, ProviderId
from jobstream.pipeline.llm_scorer import (
    MatchScorer,
    _build_user_prompt,
    _parse_llm_match,
    score_listing_llm,
)
from jobstream.profile.llm import LLMError, LLMProvider, LLMRateLimitError
from jobstream.profile.schema import CandidateProfile

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_profile(**overrides: object) -> CandidateProfile:
    defaults: dict[str, object] = {
        "technical_skills": ["Python", "FastAPI", "PostgreSQL"],
        "work_experience": ["Backend Engineer"],
        "industries": ["Fintech"],
        "seniority_level": "senior",
    }
    defaults.update(overrides)
    return CandidateProfile(**defaults)  # type: ignore[arg-type]


def _make_listing(**overrides: object) -> Listing:
    defaults: dict[str, object] = {
        "title": "Senior Python Engineer",
        "company": "Acme Corp",
        "location": "Remote",
        "link": "https://example.com/jobs/123",
        "source": ProviderId.THEIRSTACK,
        "description": "We are looking for a Senior Python Engineer to build FastAPI services.",
    }
    defaults.update(overrides)
    return Listing(**defaults)  # type: ignore[arg-type]


def _make_config(**overrides: object) -> ScoringConfig:
    defaults: dict[str, object] = {"llm_enabled": True, "timeout_seconds": 5}
    defaults.update(overrides)
    return ScoringConfig(**defaults)  # type: ignore[arg-type]


def _llm_response(**overrides: object) -> str:
    data: dict[str, object] = {
        "matchPercentage": 82,
        "matchedTechnicalSkills": ["Python", "FastAPI"],
        "matchedSoftSkills": [],
        "matchedExperience": ["Backend Engineer"],
        "missingRequirements": ["Kubernetes"],
        "reasoning": "Strong backend overlap.",
        "industryMatch": 70,
        "seniorityMatch": 90,
        "growthPotential": "high",
    }
    data.update(overrides)
    return json.dumps(data)


def _mock_provider(response: str | None = None, side_effect: object = None) -> MagicMock:
    provider = MagicMock(spec=LLMProvider)
    provider.complete.return_value = response if response is not None else _llm_response()
    if side_effect is not None:
        provider.complete.side_effect = side_effect
    return provider


# ---------------------------------------------------------------------------
# Prompt building
# ---------------------------------------------------------------------------


class TestBuildUserPrompt:
    def test_contains_job_and_profile(self) -> None:
        prompt = _build_user_prompt(_make_listing(), _make_profile(), 800)
        assert "Title: Senior Python Engineer" in prompt
        assert "Company: Acme Corp" in prompt
        assert "Technical skills: Python, FastAPI, PostgreSQL" in prompt
        assert "Seniority: senior" in prompt

    def test_description_truncated(self) -> None:
        listing = _make_listing(description="x" * 2000)
        prompt = _build_user_prompt(listing, _make_profile(), 100)
        assert "x" * 100 in prompt
        assert "x" * 101 not in prompt

    def test_empty_fields_say_none(self) -> None:
        prompt = _build_user_prompt(_make_listing(description=""), _make_profile(industries=[]), 800)
        assert "Industries: None" in prompt
        assert "No description available" in prompt


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------


class TestParseLlmMatch:
    def test_valid(self) -> None:
        result = _parse_llm_match(_llm_response())
        assert result.match_percentage == 82
        assert result.matched_technical_skills == ["Python", "FastAPI"]
        assert result.growth_potential == "high"

    def test_markdown_fence(self) -> None:
        result = _parse_llm_match(f"```json\n{_llm_response()}\n```")
        assert result.match_percentage == 82

    def test_values_clamped(self) -> None:
        result = _parse_llm_match(_llm_response(matchPercentage=140, industryMatch=-5))
        assert result.match_percentage == 100
        assert result.industry_match == 0

    def test_float_rounded(self) -> None:
        assert _parse_llm_match(_llm_response(matchPercentage=72.6)).match_percentage == 73

    def test_none_missing_requirement_dropped(self) -> None:
        result = _parse_llm_match(_llm_response(missingRequirements=["None", "Go"]))
        assert result.missing_requirements == ["Go"]

    def test_unknown_growth_defaults_to_medium(self) -> None:
        assert _parse_llm_match(_llm_response(growthPotential="stellar")).growth_potential == "medium"

    def test_missing_percentage_raises(self) -> None:
        with pytest.raises(ValueError, match="matchPercentage"):
            _parse_llm_match(json.dumps({"reasoning": "ok"}))

    def test_not_json_raises(self) -> None:
        with pytest.raises(ValueError):
            _parse_llm_match("I think this is a good match")


# ---------------------------------------------------------------------------
# score_listing_llm
# ---------------------------------------------------------------------------


class TestScoreListingLlm:
    def test_uses_scoring_system_prompt(self) -> None:
        provider = _mock_provider()
        score_listing_llm(_make_listing(), _make_profile(), _make_config(llm_model="m1"), provider)
        _, kwargs = provider.complete.call_args
        assert kwargs["model"] == "m1"
        assert "job matching expert" in kwargs["system"]

    @pytest.mark.parametrize(
        "error", [LLMError("boom"), LLMRateLimitError("slow down"), ValueError("no key")],
    )
    def test_failures_become_scoring_error(self, error: Exception) -> None:
        provider = _mock_provider(side_effect=error)
        with pytest.raises(ScoringError, match="Senior Python Engineer"):
            score_listing_llm(_make_listing(), _make_profile(), _make_config(), provider)

    def test_bad_response_becomes_scoring_error(self) -> None:
        provider = _mock_provider(response="not json")
        with pytest.raises(ScoringError):
            score_listing_llm(_make_listing(), _make_profile(), _make_config(), provider)


# ---------------------------------------------------------------------------
# MatchScorer
# ---------------------------------------------------------------------------


class TestMatchScorer:
    def test_rules_only_by_default(self) -> None:
        assert not MatchScorer().uses_llm

    def test_unconfigured_provider_falls_back(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture,
    ) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        scorer = MatchScorer(_make_config(llm_provider="openai"))
        assert not scorer.uses_llm
        assert "OPENAI_API_KEY" in caplog.text

    def test_configured_provider_used(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "key")
        assert MatchScorer(_make_config(llm_provider="anthropic")).uses_llm

    async def test_llm_score_applied(self) -> None:
        scorer = MatchScorer(_make_config(), provider=_mock_provider())
        scored = await scorer.score(_make_listing(), _make_profile())
        assert scored.match_percentage == 82
        assert scored.match_reasoning == "Strong backend overlap."

    async def test_provider_ignored_when_llm_disabled(self) -> None:
        provider = _mock_provider()
        scorer = MatchScorer(_make_config(llm_enabled=False), provider=provider)
        assert not scorer.uses_llm
        scored = await scorer.score(_make_listing(), _make_profile())
        assert scored.match_reasoning.startswith("Keyword match")
        provider.complete.assert_not_called()

    async def test_llm_failure_falls_back_to_rules(self) -> None:
        scorer = MatchScorer(_make_config(), provider=_mock_provider(side_effect=LLMError("down")))
        scored = await scorer.score(_make_listing(), _make_profile())
        assert scored.match_percentage is not None
        assert scored.match_reasoning.startswith("Keyword match")

    async def test_llm_timeout_falls_back_to_rules(self) -> None:
        def slow(*args: object, **kwargs: object) -> str:
            time.sleep(0.3)
            return _llm_response()

        scorer = MatchScorer(
            _make_config(timeout_seconds=0.05), provider=_mock_provider(side_effect=slow),
        )
        scored = await scorer.score(_make_listing(), _make_profile())
        assert scored.match_reasoning.startswith("Keyword match")

    async def test_rule_failure_delivers_unscored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(*args: object) -> None:
            raise ValueError("bad")

        monkeypatch.setattr("jobstream.pipeline.llm_scorer.score_listing", broken)
        listing = _make_listing()
        assert await MatchScorer().score(listing, _make_profile()) is listing

    async def test_batch_preserves_order_and_length(self) -> None:
        responses = iter([_llm_response(matchPercentage=p) for p in (10, 90, 50)])
        provider = _mock_provider(side_effect=lambda *a, **k: next(responses))
        scorer = MatchScorer(_make_config(max_concurrency=1), provider=provider)
        listings = [_make_listing(title=t) for t in ("A", "B", "C")]
        scored = await scorer.score_batch(listings, _make_profile())
        assert [l.title for l in scored] == ["A", "B", "C"]
        assert [l.match_percentage for l in scored] == [10, 90, 50]

    async def test_batch_rules_only(self) -> None:
        listings = [_make_listing(title="Python Engineer"), _make_listing(title="Chef")]
        scored = await MatchScorer().score_batch(listings, _make_profile())
        assert len(scored) == 2
        assert all(l.match_percentage is not None for l in scored)

    async def test_empty_batch(self) -> None:
        scorer = MatchScorer(_make_config(), provider=_mock_provider())
        assert await scorer.score_batch([], _make_profile()) == []
