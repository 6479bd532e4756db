"""Hard-constraint filter chain for tutor candidates.

Filter order:
  1. VerifiedFilter: cheapest, boolean flag only
  2. TopicFilter: subject domains vs requested topic
  3. TimeFilter: available slots vs requested time of day

Each filter only sees the survivors of the previous one. Membership of the
final list does not depend on the order.
"""

import logging
from collections.abc import Callable

from tutormatch.core.schemas import StudentPreferences, TutorCandidate
from tutormatch.pipeline.criteria import time_matches, topic_matches

logger = logging.getLogger(__name__)

# A filter is a callable that takes candidates and returns a subset.
Filter = Callable[[list[TutorCandidate]], list[TutorCandidate]]


class VerifiedFilter:
    """Remove tutors that have not been verified."""

    def __call__(self, tutors: list[TutorCandidate]) -> list[TutorCandidate]:
        result = [t for t in tutors if t.is_verified]
        excluded = len(tutors) - len(result)
        if excluded:
            logger.debug("VerifiedFilter: removed %d tutors", excluded)
        return result


class TopicFilter:
    """Keep only tutors with a subject domain overlapping the requested topic."""

    def __init__(self, learning_topic: str) -> None:
        self._topic = learning_topic

    def __call__(self, tutors: list[TutorCandidate]) -> list[TutorCandidate]:
        result = [t for t in tutors if topic_matches(t.subject_domains, self._topic)]
        excluded = len(tutors) - len(result)
        if excluded:
            logger.debug("TopicFilter: removed %d tutors", excluded)
        return result


class TimeFilter:
    """Keep only tutors with a slot overlapping the requested time of day."""

    def __init__(self, time_of_day: str) -> None:
        self._time_of_day = time_of_day

    def __call__(self, tutors: list[TutorCandidate]) -> list[TutorCandidate]:
        result = [t for t in tutors if time_matches(t.available_slots, self._time_of_day)]
        excluded = len(tutors) - len(result)
        if excluded:
            logger.debug("TimeFilter: removed %d tutors", excluded)
        return result


def build_hard_constraints(preferences: StudentPreferences) -> list[Filter]:
    """Build the filter chain for one match request."""
    return [
        VerifiedFilter(),
        TopicFilter(preferences.learning_topic),
        TimeFilter(preferences.time_of_day),
    ]


def run_filter_chain(
    tutors: list[TutorCandidate],
    filters: list[Filter],
) -> list[TutorCandidate]:
    """Apply filters in order, returning the surviving tutors."""
    result = tutors
    for f in filters:
        result = f(result)
    return result
