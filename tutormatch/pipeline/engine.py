"""Matching engine: hard-constraint filter chain, weighted scorer, ranking.

Pure over its inputs. No I/O, no shared mutable state, so the same inputs
always produce the same output and concurrent calls need no locking.
"""

import logging
from collections.abc import Iterable

from tutormatch.core.config import MatchingConfig
from tutormatch.core.schemas import ScoredMatch, StudentPreferences, TutorCandidate
from tutormatch.pipeline.matcher import build_hard_constraints, run_filter_chain
from tutormatch.pipeline.scorer import rank_matches, score_tutor

logger = logging.getLogger(__name__)


def match(
    tutors: Iterable[TutorCandidate],
    preferences: StudentPreferences,
    config: MatchingConfig,
) -> list[ScoredMatch]:
    """Rank the tutor pool against a student's preferences.

    Returns at most ``config.max_results`` matches, best first, none below
    ``config.min_score_threshold``. An empty list means no qualified match.
    """
    pool = list(tutors)
    eligible = run_filter_chain(pool, build_hard_constraints(preferences))
    scored = [score_tutor(t, preferences, config.weights) for t in eligible]
    ranked = rank_matches(scored, config)
    logger.debug(
        "Engine: %d in, %d eligible, %d returned", len(pool), len(eligible), len(ranked),
    )
    return ranked


class MatchingEngine:
    """Matching engine bound to one configuration.

    Usage::

        engine = MatchingEngine(settings.matching)
        matches = engine.match(tutors, preferences)
    """

    def __init__(self, config: MatchingConfig | None = None) -> None:
        self._config = config or MatchingConfig()

    @property
    def config(self) -> MatchingConfig:
        return self._config

    def match(
        self,
        tutors: Iterable[TutorCandidate],
        preferences: StudentPreferences,
    ) -> list[ScoredMatch]:
        return match(tutors, preferences, self._config)
