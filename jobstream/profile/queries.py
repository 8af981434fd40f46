"""Generate provider search queries from a CandidateProfile.

Queries are generic ("remote python developer"); each adapter rewrites them
into its own request shape.
"""

import logging

from jobstream.profile.schema import CandidateProfile

logger = logging.getLogger(__name__)

# Work-experience phrase → related queries
_ROLE_MAP: dict[str, list[str]] = {
    "software engineer": ["remote software engineer", "remote developer", "remote backend engineer"],
    "software developer": ["remote software developer", "remote developer", "remote engineer"],
    "data scientist": ["remote data scientist", "remote data analyst", "remote analytics"],
    "product manager": ["remote product manager", "remote product"],
    "marketing manager": ["remote marketing manager", "remote digital marketing"],
    "project manager": ["remote project manager", "remote program manager"],
    "business analyst": ["remote business analyst", "remote analyst"],
    "ux designer": ["remote ux designer", "remote product designer"],
    "sales manager": ["remote sales manager", "remote account manager"],
    "customer success": ["remote customer success", "remote account management"],
    "devops engineer": ["remote devops", "remote cloud engineer"],
    "frontend developer": ["remote frontend", "remote react developer"],
    "backend developer": ["remote backend", "remote api developer"],
    "full stack": ["remote fullstack", "remote web developer"],
    "head of product": ["remote head of product", "remote product director"],
    "technical lead": ["remote technical lead", "remote engineering lead"],
    "ai engineer": ["remote ai engineer", "remote machine learning", "remote ml engineer"],
}

_GENERIC_ROLE_WORDS = (
    "manager", "engineer", "developer", "analyst", "designer",
    "consultant", "lead", "director",
)

_RESPONSIBILITY_MAP: dict[str, str] = {
    "developed": "remote developer",
    "managed": "remote manager",
    "designed": "remote designer",
    "analyzed": "remote analyst",
    "led": "remote lead",
    "coordinated": "remote coordinator",
    "architected": "remote architect",
    "built": "remote developer",
}

_SKILL_MAP: dict[str, str] = {
    "javascript": "remote javascript developer",
    "python": "remote python developer",
    "go": "remote go developer",
    "golang": "remote go developer",
    "react": "remote react developer",
    "node.js": "remote nodejs developer",
    "aws": "remote cloud engineer",
    "sql": "remote data analyst",
    "tableau": "remote data analyst",
    "salesforce": "remote salesforce admin",
    "figma": "remote ux designer",
    "typescript": "remote typescript developer",
    "postgresql": "remote database developer",
    "mongodb": "remote database developer",
    "docker": "remote devops engineer",
    "kubernetes": "remote devops engineer",
}

_SENIORITY_FALLBACK: dict[str, list[str]] = {
    "entry": ["remote entry level", "remote junior", "remote associate"],
    "mid": ["remote specialist", "remote professional", "remote coordinator"],
    "senior": ["remote senior", "remote lead", "remote principal"],
    "lead": ["remote manager", "remote lead", "remote director"],
    "executive": ["remote director", "remote vp", "remote executive"],
}


def generate_queries(profile: CandidateProfile, max_queries: int = 12) -> list[str]:
    """Build an ordered, de-duplicated list of search queries.

    Priority: work experience, responsibilities, technical skills, industries.
    Falls back to seniority-based queries when fewer than three were found.
    """
    queries: list[str] = []

    for exp in profile.work_experience[:8]:
        exp_lower = exp.lower()
        for role, related in _ROLE_MAP.items():
            if role in exp_lower:
                queries.extend(related)
        for word in _GENERIC_ROLE_WORDS:
            if word in exp_lower.split():
                queries.append(f"remote {word}")

    for resp in profile.responsibilities[:5]:
        words = resp.lower().split()
        for verb, query in _RESPONSIBILITY_MAP.items():
            if verb in words:
                queries.append(query)

    for skill in profile.technical_skills[:5]:
        query = _SKILL_MAP.get(skill.lower().strip())
        if query:
            queries.append(query)

    for industry in profile.industries[:3]:
        queries.append(f"remote {industry.lower().strip()}")

    if len(_unique(queries)) < 3:
        queries.extend(_SENIORITY_FALLBACK.get(profile.seniority_level, _SENIORITY_FALLBACK["mid"]))

    result = _unique(queries)[:max_queries]
    logger.debug("Generated %d queries: %s", len(result), result)
    return result


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))
