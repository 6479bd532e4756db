"""Weighted scoring and ranking for tutors that passed the hard constraints.

normalized_score = sum(weight_i * feature_i) over topic, language, time and
rating. Topic and time are always 1 here (the filter chain already required
them); language is 1 or 0; rating is the continuous quality score below.
Score range: 0-100 for display, derived from the normalized score.
"""

import logging
import math

from tutormatch.core.config import MatchingConfig, MatchWeights
from tutormatch.core.schemas import (
    MatchDetails,
    MatchFeatures,
    ScoredMatch,
    StudentPreferences,
    TutorCandidate,
)
from tutormatch.pipeline.criteria import language_matches, time_matches, topic_matches

logger = logging.getLogger(__name__)

MAX_RATING = 5.0
EXPERIENCE_CAP_YEARS = 10.0
SESSIONS_CAP = 100.0

RATING_SHARE = 0.7
EXPERIENCE_SHARE = 0.2
SESSIONS_SHARE = 0.1


def rating_score(tutor: TutorCandidate) -> float:
    """Quality score in [0, 1]: 70% rating, capped experience and volume bonuses."""
    stars = tutor.rating / MAX_RATING
    experience_bonus = min(tutor.years_of_experience / EXPERIENCE_CAP_YEARS, 1.0) * EXPERIENCE_SHARE
    sessions_bonus = min(tutor.total_sessions_completed / SESSIONS_CAP, 1.0) * SESSIONS_SHARE
    combined = math.fsum((stars * RATING_SHARE, experience_bonus, sessions_bonus))
    return max(0.0, min(1.0, combined))


def extract_features(tutor: TutorCandidate, preferences: StudentPreferences) -> MatchFeatures:
    """Compute the raw feature vector for one tutor."""
    return MatchFeatures(
        topic=int(topic_matches(tutor.subject_domains, preferences.learning_topic)),
        language=int(language_matches(tutor.teaching_languages, preferences.preferred_language)),
        time=int(time_matches(tutor.available_slots, preferences.time_of_day)),
        rating=rating_score(tutor),
    )


def weighted_score(features: MatchFeatures, weights: MatchWeights) -> float:
    return math.fsum((
        weights.topic * features.topic,
        weights.language * features.language,
        weights.time * features.time,
        weights.rating * features.rating,
    ))


def score_tutor(
    tutor: TutorCandidate,
    preferences: StudentPreferences,
    weights: MatchWeights,
) -> ScoredMatch:
    """Score a single tutor that already passed the hard constraints."""
    features = extract_features(tutor, preferences)
    normalized = weighted_score(features, weights)

    details = MatchDetails(
        topic=features.topic == 1,
        language=features.language == 1,
        time=features.time == 1,
        rating_score=features.rating,
        weights=weights.model_dump(),
    )

    return ScoredMatch(
        id=tutor.id,
        name=tutor.name,
        email=tutor.email,
        subject_domains=list(tutor.subject_domains),
        teaching_languages=list(tutor.teaching_languages),
        available_slots=list(tutor.available_slots),
        rating=tutor.rating,
        years_of_experience=tutor.years_of_experience,
        total_sessions_completed=tutor.total_sessions_completed,
        score=round(normalized * 100),
        normalized_score=normalized,
        match_details=details,
        features=features,
    )


def rank_matches(scored: list[ScoredMatch], config: MatchingConfig) -> list[ScoredMatch]:
    """Sort by normalized score desc, drop entries under the threshold, cap the list.

    The sort is stable: equal scores keep their input order.
    """
    ranked = sorted(scored, key=lambda s: s.normalized_score, reverse=True)
    qualified = [s for s in ranked if s.normalized_score >= config.min_score_threshold]
    below = len(ranked) - len(qualified)
    if below:
        logger.debug("Threshold %.2f: removed %d matches", config.min_score_threshold, below)
    return qualified[: config.max_results]
