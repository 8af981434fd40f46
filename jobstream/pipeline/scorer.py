"""Rule-based match scoring of a listing against a candidate profile.

Score range: 0-95. Four weighted signals, each only counted when the profile
carries data for it, so a sparse profile is not penalised for missing fields:

  technical skills   35%
  role / title       30%
  industry           20%
  responsibilities   15%
"""

import logging
import re

from jobstream.core.schemas import Listing, MatchResult
from jobstream.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)

MAX_RULE_SCORE = 95

TECH_WEIGHT = 35
ROLE_WEIGHT = 30
INDUSTRY_WEIGHT = 20
RESPONSIBILITY_WEIGHT = 15

_NON_ALNUM = re.compile(r"[^a-z0-9]")

_SENIORITY_WORDS: dict[str, tuple[str, ...]] = {
    "entry": ("junior", "entry", "associate", "intern", "graduate"),
    "mid": (),
    "senior": ("senior", "sr.", "staff"),
    "lead": ("lead", "principal", "manager", "head of", "architect"),
    "executive": ("director", "vp", "vice president", "chief", "head of"),
}


def _skill_in_text(skill: str, text: str) -> bool:
    skill = skill.lower().strip()
    if len(skill) <= 2:
        # "go", "r", "c": too ambiguous as substrings, require a word match
        return re.search(rf"(?<![a-z0-9]){re.escape(skill)}(?![a-z0-9])", text) is not None
    return (
        skill in text
        or _NON_ALNUM.sub("", skill) in text
        or ("." in skill and skill.replace(".", "") in text)
    )


def _role_score(experience: list[str], title: str) -> tuple[float, list[str]]:
    title_words = [w for w in title.lower().split() if len(w) > 2]
    best = 0.0
    matched: list[str] = []
    for entry in experience:
        exp_words = [w for w in entry.lower().split() if len(w) > 2]
        if not exp_words:
            continue
        hits = [
            w for w in exp_words
            if any(t in w or w in t for t in title_words)
        ]
        if hits:
            matched.append(entry)
            best = max(best, len(hits) / len(exp_words) * 100)
    return min(best, 100.0), matched


def _seniority_score(level: str, title: str) -> int:
    title = title.lower()
    markers = [w for words in _SENIORITY_WORDS.values() for w in words]
    if level == "mid":
        return 40 if any(m in title for m in markers) else 80
    if any(m in title for m in _SENIORITY_WORDS.get(level, ())):
        return 90
    return 50


def score_listing(listing: Listing, profile: CandidateProfile) -> MatchResult:
    """Score a single listing using weighted keyword overlap.

    Returns:
        MatchResult with a 0-95 percentage and the matched/missing breakdown.
    """
    text = f"{listing.title} {listing.description}".lower()
    total = 0.0
    possible = 0

    matched_skills: list[str] = []
    missing: list[str] = []
    if profile.technical_skills:
        for skill in profile.technical_skills:
            if _skill_in_text(skill, text):
                matched_skills.append(skill)
            else:
                missing.append(skill)
        tech = len(matched_skills) / len(profile.technical_skills) * 100
        total += tech * TECH_WEIGHT / 100
        possible += TECH_WEIGHT

    matched_experience: list[str] = []
    if profile.work_experience:
        role, matched_experience = _role_score(profile.work_experience, listing.title)
        total += role * ROLE_WEIGHT / 100
        possible += ROLE_WEIGHT

    industry = 0
    if profile.industries:
        if any(len(i) > 2 and i.lower() in text for i in profile.industries):
            industry = 100
        total += industry * INDUSTRY_WEIGHT / 100
        possible += INDUSTRY_WEIGHT

    if profile.responsibilities:
        hits = sum(
            1
            for resp in profile.responsibilities
            for word in resp.lower().split()
            if len(word) > 3 and word in text
        )
        keyword = min(hits / (len(profile.responsibilities) * 2) * 100, 100.0)
        total += keyword * RESPONSIBILITY_WEIGHT / 100
        possible += RESPONSIBILITY_WEIGHT

    percentage = round(total / possible * 100) if possible else 0
    percentage = min(percentage, MAX_RULE_SCORE)

    matched_soft = [s for s in profile.soft_skills if len(s) > 2 and s.lower() in text]

    return MatchResult(
        match_percentage=percentage,
        industry_match=industry if profile.industries else None,
        seniority_match=_seniority_score(profile.seniority_level, listing.title),
        matched_technical_skills=matched_skills,
        matched_soft_skills=matched_soft,
        matched_experience=matched_experience,
        missing_requirements=missing[:5],
        reasoning=(
            f"Keyword match: {len(matched_skills)}/{len(profile.technical_skills)} skills"
            if profile.technical_skills else "Keyword match on role and responsibilities"
        ),
    )


def score_listings(listings: list[Listing], profile: CandidateProfile) -> list[Listing]:
    """Score a batch, returning listings sorted by match percentage desc."""
    scored = [l.with_match(score_listing(l, profile)) for l in listings]
    scored.sort(key=lambda l: l.match_percentage or 0, reverse=True)
    return scored
