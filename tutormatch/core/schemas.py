"""Core data models for tutor matching, onboarding, and dashboards."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel

_NOT_AVAILABLE = "N/A"


def _load_yaml(path: str | Path) -> Any:
    path = Path(path)
    if not path.exists():
        msg = f"File not found: {path}"
        raise FileNotFoundError(msg)
    return yaml.safe_load(path.read_text())


def parse_list(value: Any) -> list[str]:
    """Coerce a free-text list field into a list of trimmed strings.

    Accepts a list/tuple/set of strings or a single comma-separated string.
    ``None`` and unsupported types give an empty list; non-string items are
    dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",")]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [item.strip() for item in value if isinstance(item, str)]
    return []


class TutorCandidate(BaseModel):
    """Read-only tutor snapshot handed to the matching engine.

    Absent collections become empty lists and absent numbers become zero, so
    partially filled records never make matching fail. camelCase keys from
    stored documents are accepted alongside the snake_case names.
    Non-string items in the list fields are dropped rather than matched as
    empty text.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str = ""
    is_verified: bool = False
    subject_domains: list[str] = Field(default_factory=list)
    teaching_languages: list[str] = Field(default_factory=list)
    available_slots: list[str] = Field(default_factory=list)
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    total_ratings: int = Field(default=0, ge=0)
    years_of_experience: float = Field(default=0.0, ge=0.0)
    total_sessions_completed: int = Field(default=0, ge=0)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("name", "email", mode="before")
    @classmethod
    def text_or_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("is_verified", mode="before")
    @classmethod
    def verified_or_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("subject_domains", "teaching_languages", "available_slots", mode="before")
    @classmethod
    def list_or_empty(cls, v: Any) -> list[str]:
        return parse_list(v)

    @field_validator(
        "rating", "total_ratings", "years_of_experience", "total_sessions_completed",
        mode="before",
    )
    @classmethod
    def number_or_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class StudentPreferences(BaseModel):
    """The three criteria a student supplies for one match request."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    learning_topic: str
    preferred_language: str
    time_of_day: str

    @field_validator("learning_topic", "preferred_language", "time_of_day", mode="before")
    @classmethod
    def required_text(cls, v: Any) -> str:
        if v is None or not isinstance(v, str) or not v.strip():
            msg = "value is required and must be a non-empty string"
            raise ValueError(msg)
        return v.strip()


class MatchFeatures(BaseModel):
    """Raw per-dimension feature values used to compute a score."""

    model_config = ConfigDict(frozen=True)

    topic: int = Field(ge=0, le=1)
    language: int = Field(ge=0, le=1)
    time: int = Field(ge=0, le=1)
    rating: float = Field(ge=0.0, le=1.0)


class MatchDetails(BaseModel):
    """Human-readable breakdown of which dimensions matched."""

    model_config = ConfigDict(frozen=True)

    topic: bool
    language: bool
    time: bool
    rating_score: float
    weights: dict[str, float]


class ScoredMatch(BaseModel):
    """A tutor that passed the hard constraints, with its blended score."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    subject_domains: list[str]
    teaching_languages: list[str]
    available_slots: list[str]
    rating: float
    years_of_experience: float
    total_sessions_completed: int

    score: int = Field(ge=0)
    normalized_score: float = Field(ge=0.0)
    match_details: MatchDetails
    features: MatchFeatures


class MatchResult(BaseModel):
    """Service-level answer to a match request."""

    matches: list[ScoredMatch] = Field(default_factory=list)
    total_candidates: int = 0
    matched_count: int = 0
    message: str = ""


class RatingResult(BaseModel):
    """Outcome of a rating submission."""

    tutor_id: str
    new_rating: float
    stored_rating: float
    total_ratings: int


class TutorRegistration(BaseModel):
    """Fields collected when a tutor signs up.

    List fields accept either a list or a comma-separated string.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    name: str
    email: str
    subject_domains: list[str] = Field(default_factory=list)
    teaching_languages: list[str] = Field(default_factory=list)
    available_slots: list[str] = Field(default_factory=list)
    years_of_experience: float = Field(default=0.0, ge=0.0)

    @field_validator("name", "email")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v.strip()

    @field_validator("subject_domains", "teaching_languages", "available_slots", mode="before")
    @classmethod
    def list_or_empty(cls, v: Any) -> list[str]:
        return [item for item in parse_list(v) if item]

    @classmethod
    def list_from_yaml(cls, path: str | Path) -> list["TutorRegistration"]:
        """Load tutor registrations from a YAML file.

        The document is either a list of tutors or a mapping with a
        ``tutors`` key holding that list.
        """
        raw = _load_yaml(path)
        if isinstance(raw, dict):
            raw = raw.get("tutors") or []
        if not isinstance(raw, list):
            msg = f"Expected a list of tutors in {path}"
            raise ValueError(msg)
        return [cls.model_validate(item) for item in raw]


class StudentProfileUpdate(BaseModel):
    """Onboarding answers a student may send. Unknown keys are ignored.

    Unquoted numbers in YAML (``grade: 10``) are kept as text.
    Only fields that were actually provided are written; see
    ``model_dump(exclude_unset=True)``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    name: str | None = Field(
        default=None, validation_alias=AliasChoices("name", "fullName", "full_name"),
    )
    grade: str | None = None
    phone_number: str | None = None
    learning_topic: str | None = None
    educational_board: str | None = None
    exams: str | None = None
    tutor_gender: Literal["Male", "Female", "No Preference"] | None = None
    preferred_language: str | None = None
    mode: Literal["Online", "Offline", "Hybrid"] | None = None
    session_type: Literal["Group", "Individual"] | None = None
    days_per_week: int | None = Field(default=None, ge=0, le=7)
    time_of_day: str | None = None
    class_duration: str | None = None
    week_preference: str | None = None
    learning_style: str | None = None
    wants_assignments: str | None = None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "StudentProfileUpdate":
        """Load onboarding answers from a YAML mapping."""
        raw = _load_yaml(path) or {}
        if not isinstance(raw, dict):
            msg = f"Expected a mapping of profile fields in {path}"
            raise ValueError(msg)
        return cls.model_validate(raw)


class StudentProfile(BaseModel):
    """Stored student record (without credentials)."""

    id: str
    email: str
    name: str = ""
    grade: str | None = None
    phone_number: str | None = None
    learning_topic: str | None = None
    educational_board: str | None = None
    exams: str | None = None
    tutor_gender: str | None = None
    preferred_language: str | None = None
    mode: str | None = None
    session_type: str | None = None
    days_per_week: int | None = None
    time_of_day: str | None = None
    class_duration: str | None = None
    week_preference: str | None = None
    learning_style: str | None = None
    wants_assignments: str | None = None
    current_tutor_id: str | None = None

    @property
    def is_onboarded(self) -> bool:
        return bool(self.learning_topic)

    def preferences(self) -> StudentPreferences:
        """Build match preferences from the stored onboarding answers.

        Raises ``ValidationError`` when any of the three criteria is missing.
        """
        return StudentPreferences(
            learning_topic=self.learning_topic,  # type: ignore[arg-type]
            preferred_language=self.preferred_language,  # type: ignore[arg-type]
            time_of_day=self.time_of_day,  # type: ignore[arg-type]
        )


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------


class StudentSummary(BaseModel):
    id: str
    name: str
    email: str
    assigned: bool = False
    learning_topic: str = _NOT_AVAILABLE
    preferred_language: str = _NOT_AVAILABLE
    grade: str = _NOT_AVAILABLE
    mode: str = _NOT_AVAILABLE
    time_of_day: str = _NOT_AVAILABLE

    @classmethod
    def from_profile(cls, profile: StudentProfile) -> "StudentSummary":
        return cls(
            id=profile.id,
            name=profile.name,
            email=profile.email,
            assigned=profile.current_tutor_id is not None,
            learning_topic=profile.learning_topic or _NOT_AVAILABLE,
            preferred_language=profile.preferred_language or _NOT_AVAILABLE,
            grade=profile.grade or _NOT_AVAILABLE,
            mode=profile.mode or _NOT_AVAILABLE,
            time_of_day=profile.time_of_day or _NOT_AVAILABLE,
        )


class TutorSummary(BaseModel):
    id: str
    name: str
    email: str
    assigned: bool
    assigned_count: int
    subject_domains: list[str]
    teaching_languages: list[str]
    is_verified: bool


class DashboardStats(BaseModel):
    """Counts and summaries across every student and tutor."""

    total_students: int
    total_tutors: int
    assigned_students: int
    unassigned_students: int
    assigned_tutors: int
    unassigned_tutors: int
    students: list[StudentSummary] = Field(default_factory=list)
    tutors: list[TutorSummary] = Field(default_factory=list)


class TutorDashboard(BaseModel):
    """A tutor's public profile plus their roster."""

    tutor: TutorCandidate
    assigned_students: list[StudentSummary] = Field(default_factory=list)
    total_assigned: int = 0
