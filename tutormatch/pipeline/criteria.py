"""Free-text comparison rules for topic, language, and time-of-day.

All comparisons run on normalized text (trimmed, lower-cased) and use
containment in either direction, so "Physics" matches "Physics 101" and
vice versa.
"""

from collections.abc import Iterable
from typing import Any

ANY_LANGUAGE = "any"

# Ordered: classification picks the first period with a keyword hit.
# The sets overlap ("pm", "8", "9"); overlaps are not disambiguated.
TIME_PERIOD_KEYWORDS: dict[str, tuple[str, ...]] = {
    "morning": ("morning", "am", "8", "9", "10", "11", "early"),
    "afternoon": ("afternoon", "pm", "12", "1", "2", "3", "4", "noon"),
    "evening": ("evening", "pm", "5", "6", "7", "8", "9", "night", "late"),
}


def normalize(value: Any) -> str:
    """Canonical comparison form. Non-strings normalize to ''."""
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def _contains_either_way(a: str, b: str) -> bool:
    return a in b or b in a


def _any_overlap(labels: Iterable[str], requested: str) -> bool:
    return any(_contains_either_way(normalize(label), requested) for label in labels)


def topic_matches(subjects: Iterable[str] | None, topic: Any) -> bool:
    """True if any subject and the topic contain one another."""
    requested = normalize(topic)
    if not requested or not subjects:
        return False
    return _any_overlap(subjects, requested)


def language_matches(languages: Iterable[str] | None, language: Any) -> bool:
    """True if the student accepts any language or a teaching language overlaps."""
    requested = normalize(language)
    if not requested:
        return False
    if requested == ANY_LANGUAGE:
        return True
    if not languages:
        return False
    return _any_overlap(languages, requested)


def classify_time_period(time_of_day: Any) -> str | None:
    """Return the first period whose keywords appear in the request, if any."""
    requested = normalize(time_of_day)
    if not requested:
        return None
    for period, keywords in TIME_PERIOD_KEYWORDS.items():
        if any(kw in requested for kw in keywords):
            return period
    return None


def time_matches(slots: Iterable[str] | None, time_of_day: Any) -> bool:
    """True if any slot overlaps the request directly or by time period."""
    requested = normalize(time_of_day)
    if not requested or not slots:
        return False

    period = classify_time_period(requested)
    period_keywords = TIME_PERIOD_KEYWORDS[period] if period else ()

    for slot in slots:
        normalized_slot = normalize(slot)
        if _contains_either_way(normalized_slot, requested):
            return True
        if any(kw in normalized_slot for kw in period_keywords):
            return True
    return False
