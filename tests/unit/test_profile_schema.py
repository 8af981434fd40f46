"""Tests for CandidateProfile schema."""

from pathlib import Path
from textwrap import dedent

import pytest

from jobstream.profile.schema import CandidateProfile


class TestCandidateProfile:
    def test_defaults(self) -> None:
        p = CandidateProfile()
        assert p.technical_skills == []
        assert p.seniority_level == "mid"
        assert p.is_empty()
        assert not p.has_signal()

    def test_camel_case_input(self) -> None:
        p = CandidateProfile.model_validate({
            "technicalSkills": ["Python"],
            "workExperience": ["Backend Engineer"],
            "seniorityLevel": "senior",
        })
        assert p.technical_skills == ["Python"]
        assert p.work_experience == ["Backend Engineer"]
        assert p.seniority_level == "senior"

    def test_unknown_seniority_defaults_to_mid(self) -> None:
        assert CandidateProfile(seniority_level="wizard").seniority_level == "mid"

    def test_seniority_normalized(self) -> None:
        assert CandidateProfile(seniority_level=" Lead ").seniority_level == "lead"

    def test_experience_objects_coerced_to_titles(self) -> None:
        p = CandidateProfile.model_validate({
            "workExperience": [
                {"jobTitle": "Data Scientist", "company": "Acme"},
                {"role": "Analyst"},
                "Product Manager",
            ],
        })
        assert p.work_experience == ["Data Scientist", "Analyst", "Product Manager"]

    def test_blank_and_none_entries_dropped(self) -> None:
        p = CandidateProfile.model_validate({"technicalSkills": ["Go", "", "  ", None]})
        assert p.technical_skills == ["Go"]

    def test_single_string_becomes_list(self) -> None:
        assert CandidateProfile.model_validate({"industries": "Fintech"}).industries == ["Fintech"]

    def test_null_field_becomes_empty(self) -> None:
        assert CandidateProfile.model_validate({"softSkills": None}).soft_skills == []


class TestSignal:
    @pytest.mark.parametrize(
        "field", ["technical_skills", "work_experience", "responsibilities"],
    )
    def test_signal_fields(self, field: str) -> None:
        assert CandidateProfile(**{field: ["something"]}).has_signal()

    def test_other_fields_are_not_signal(self) -> None:
        p = CandidateProfile(industries=["Fintech"], education=["BSc"], soft_skills=["Teamwork"])
        assert not p.has_signal()
        assert not p.is_empty()


class TestYaml:
    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.yaml"
        path.write_text(dedent("""\
            technicalSkills: [go, python]
            workExperience:
              - Software Engineer
            seniorityLevel: senior
        """))
        p = CandidateProfile.from_yaml(path)
        assert p.technical_skills == ["go", "python"]
        assert p.seniority_level == "senior"

    def test_from_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "profile.json"
        path.write_text('{"technical_skills": ["rust"], "responsibilities": ["built services"]}')
        p = CandidateProfile.from_yaml(path)
        assert p.technical_skills == ["rust"]

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Profile file not found"):
            CandidateProfile.from_yaml(tmp_path / "nope.yaml")

    def test_roundtrip(self, tmp_path: Path) -> None:
        original = CandidateProfile(
            technical_skills=["Python"], industries=["Health"], seniority_level="lead",
        )
        path = tmp_path / "out" / "profile.yaml"
        original.to_yaml(path)
        assert CandidateProfile.from_yaml(path) == original
