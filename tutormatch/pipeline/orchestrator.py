"""Orchestrator: wires request validation, tutor fetch, engine, and export.

Data flow:
  1. Validate the three required criteria (fail fast, engine not invoked)
  2. Fetch verified tutors from the DB
  3. Empty pool → explicit "no candidates" result
  4. Engine → ranked matches
  5. Summary logging
"""

import json
import logging
import sqlite3
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from tutormatch.core.config import MatchingConfig
from tutormatch.core.db import get_student, list_tutors
from tutormatch.core.schemas import MatchResult, StudentPreferences
from tutormatch.pipeline.engine import MatchingEngine

logger = logging.getLogger(__name__)

REQUIRED_CRITERIA = ("learning_topic", "preferred_language", "time_of_day")

NO_CANDIDATES_MESSAGE = "No verified tutors available at this time."
NO_MATCHES_MESSAGE = "No tutors matched your preferences."


def parse_preferences(criteria: Mapping[str, Any] | StudentPreferences) -> StudentPreferences:
    """Validate raw match criteria. Raises ValidationError if any is missing."""
    if isinstance(criteria, StudentPreferences):
        return criteria
    try:
        return StudentPreferences.model_validate(dict(criteria))
    except ValidationError:
        logger.warning(
            "Match failed: missing required criteria (required: %s)",
            ", ".join(REQUIRED_CRITERIA),
        )
        raise


def find_matches(
    conn: sqlite3.Connection,
    criteria: Mapping[str, Any] | StudentPreferences,
    config: MatchingConfig,
) -> MatchResult:
    """Run one match request against the verified tutor pool."""
    preferences = parse_preferences(criteria)

    tutors = list_tutors(conn, verified_only=True)
    if not tutors:
        logger.info("No verified tutors available")
        return MatchResult(message=NO_CANDIDATES_MESSAGE)

    matches = MatchingEngine(config).match(tutors, preferences)

    logger.info(
        "Match results: %d/%d tutors matched for topic=%r",
        len(matches), len(tutors), preferences.learning_topic,
    )
    return MatchResult(
        matches=matches,
        total_candidates=len(tutors),
        matched_count=len(matches),
        message=(
            f"Found {len(matches)} matching tutor(s)." if matches else NO_MATCHES_MESSAGE
        ),
    )


def find_matches_for_student(
    conn: sqlite3.Connection,
    student_id: str,
    config: MatchingConfig,
) -> MatchResult:
    """Match using the preferences a student gave during onboarding."""
    student = get_student(conn, student_id)
    return find_matches(conn, student.preferences(), config)


def export_matches_json(result: MatchResult) -> str:
    """Export match results as a JSON string."""
    return json.dumps(result.model_dump(mode="json"), indent=2)
