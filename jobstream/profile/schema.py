"""CandidateProfile model: the structured form of a resume."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator

from jobstream.core.schemas import WireModel

logger = logging.getLogger(__name__)

ALLOWED_SENIORITY = {"entry", "mid", "senior", "lead", "executive"}

# Keys an extractor may use for a work-experience entry given as an object.
_EXPERIENCE_TITLE_KEYS = ("jobTitle", "job_title", "title", "role")


def _as_text(item: Any) -> str:
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        for key in _EXPERIENCE_TITLE_KEYS:
            value = item.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return ", ".join(str(v) for v in item.values() if v)
    if item is None:
        return ""
    return str(item).strip()


class CandidateProfile(WireModel):
    """Structured profile produced by the profile extractor.

    The search core treats it as already validated; it only requires that at
    least one signal field (skills, experience, responsibilities) is present.
    """

    technical_skills: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    work_experience: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    education: list[str] = Field(default_factory=list)
    qualifications: list[str] = Field(default_factory=list)
    seniority_level: str = "mid"

    @field_validator(
        "technical_skills", "soft_skills", "work_experience", "industries",
        "responsibilities", "achievements", "education", "qualifications",
        mode="before",
    )
    @classmethod
    def coerce_entries(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, (str, dict)):
            v = [v]
        entries = [_as_text(item) for item in v]
        return [e for e in entries if e]

    @field_validator("seniority_level", mode="before")
    @classmethod
    def seniority_in_allowed(cls, v: Any) -> str:
        level = str(v or "").lower().strip()
        if level not in ALLOWED_SENIORITY:
            if level:
                logger.debug("Unknown seniority '%s', defaulting to 'mid'", level)
            return "mid"
        return level

    def has_signal(self) -> bool:
        """True when skills, experience or responsibilities are present."""
        return bool(self.technical_skills or self.work_experience or self.responsibilities)

    def is_empty(self) -> bool:
        """True when every list field is empty."""
        return not any((
            self.technical_skills, self.soft_skills, self.work_experience,
            self.industries, self.responsibilities, self.achievements,
            self.education, self.qualifications,
        ))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CandidateProfile":
        """Load a profile from a YAML (or JSON) file."""
        path = Path(path)
        if not path.exists():
            msg = f"Profile file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)

    def to_yaml(self, path: str | Path) -> None:
        """Write the profile to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump()
        path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
