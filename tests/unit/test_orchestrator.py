"""Tests for the match service: validation, pool fetch, result envelope, export."""

import json
import logging
import sqlite3

import pytest
from pydantic import ValidationError

from tutormatch.core.config import MatchingConfig
from tutormatch.core.db import init_db, insert_tutor, upsert_student_profile
from tutormatch.core.schemas import StudentPreferences, StudentProfileUpdate, TutorRegistration
from tutormatch.pipeline.orchestrator import (
    NO_CANDIDATES_MESSAGE,
    NO_MATCHES_MESSAGE,
    export_matches_json,
    find_matches,
    find_matches_for_student,
    parse_preferences,
)

_CRITERIA = {
    "learning_topic": "Math",
    "preferred_language": "English",
    "time_of_day": "Evening (5-9 PM)",
}


@pytest.fixture
def db(tmp_path: pytest.TempPathFactory) -> sqlite3.Connection:  # type: ignore[type-arg]
    return init_db(tmp_path / "test.db")  # type: ignore[operator]


def _add_tutor(
    db: sqlite3.Connection,
    email: str,
    subjects: str = "Math",
    verified: bool = True,
) -> str:
    registration = TutorRegistration(
        name=email.split("@")[0].title(),
        email=email,
        subject_domains=subjects,  # type: ignore[arg-type]
        teaching_languages="English",  # type: ignore[arg-type]
        available_slots="Evening (5-9 PM)",  # type: ignore[arg-type]
    )
    return insert_tutor(db, registration, auto_verify=verified)


class TestParsePreferences:
    def test_from_mapping(self) -> None:
        assert parse_preferences(_CRITERIA).learning_topic == "Math"

    def test_passthrough(self) -> None:
        prefs = StudentPreferences(**_CRITERIA)
        assert parse_preferences(prefs) is prefs

    @pytest.mark.parametrize("missing", ["learning_topic", "preferred_language", "time_of_day"])
    def test_missing_field(self, missing: str, caplog: pytest.LogCaptureFixture) -> None:
        criteria = {k: v for k, v in _CRITERIA.items() if k != missing}
        with caplog.at_level(logging.WARNING), pytest.raises(ValidationError):
            parse_preferences(criteria)
        assert "missing required criteria" in caplog.text


class TestFindMatches:
    def test_rejects_before_fetch(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com")
        with pytest.raises(ValidationError):
            find_matches(db, {**_CRITERIA, "time_of_day": None}, MatchingConfig())

    def test_empty_pool(self, db: sqlite3.Connection) -> None:
        result = find_matches(db, _CRITERIA, MatchingConfig())
        assert result.matches == []
        assert result.total_candidates == 0
        assert result.message == NO_CANDIDATES_MESSAGE

    def test_only_unverified_is_empty_pool(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com", verified=False)
        result = find_matches(db, _CRITERIA, MatchingConfig())
        assert result.total_candidates == 0
        assert result.message == NO_CANDIDATES_MESSAGE

    def test_no_qualified_matches(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com", subjects="Physics")
        result = find_matches(db, _CRITERIA, MatchingConfig())
        assert result.matches == []
        assert result.total_candidates == 1
        assert result.message == NO_MATCHES_MESSAGE

    def test_matches(self, db: sqlite3.Connection, caplog: pytest.LogCaptureFixture) -> None:
        _add_tutor(db, "asha@example.com")
        _add_tutor(db, "ben@example.com", subjects="Physics")
        _add_tutor(db, "cara@example.com", subjects="Mathematics", verified=False)
        with caplog.at_level(logging.INFO):
            result = find_matches(db, _CRITERIA, MatchingConfig())
        assert [m.email for m in result.matches] == ["asha@example.com"]
        assert result.total_candidates == 2
        assert result.matched_count == 1
        assert "1/2 tutors matched" in caplog.text

    def test_respects_config(self, db: sqlite3.Connection) -> None:
        for i in range(4):
            _add_tutor(db, f"t{i}@example.com")
        result = find_matches(db, _CRITERIA, MatchingConfig(max_results=2))
        assert result.matched_count == 2

    def test_camel_case_criteria(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com")
        criteria = {"learningTopic": "math", "preferredLanguage": "any", "timeOfDay": "evening"}
        assert find_matches(db, criteria, MatchingConfig()).matched_count == 1


class TestFindMatchesForStudent:
    def test_uses_onboarding_answers(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com")
        student = upsert_student_profile(
            db, "meera@example.com", StudentProfileUpdate.model_validate(_CRITERIA),
        )
        result = find_matches_for_student(db, student.id, MatchingConfig())
        assert result.matched_count == 1

    def test_incomplete_onboarding(self, db: sqlite3.Connection) -> None:
        student = upsert_student_profile(
            db, "meera@example.com", StudentProfileUpdate(learning_topic="Math"),
        )
        with pytest.raises(ValidationError):
            find_matches_for_student(db, student.id, MatchingConfig())


class TestExport:
    def test_json(self, db: sqlite3.Connection) -> None:
        _add_tutor(db, "asha@example.com")
        data = json.loads(export_matches_json(find_matches(db, _CRITERIA, MatchingConfig())))
        assert data["matched_count"] == 1
        match = data["matches"][0]
        assert match["email"] == "asha@example.com"
        assert match["match_details"]["topic"] is True
        assert set(match["features"]) == {"topic", "language", "time", "rating"}
