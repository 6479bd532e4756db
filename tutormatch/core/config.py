"""Configuration models and YAML loader for the tutor matching service."""

import math
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


class MatchWeights(BaseModel):
    """Per-dimension weights blended into the final match score.

    Designed to sum to 1.0 so the normalized score stays in [0, 1], but this
    is not enforced.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: float = Field(default=0.5, ge=0.0)
    language: float = Field(default=0.2, ge=0.0)
    time: float = Field(default=0.2, ge=0.0)
    rating: float = Field(default=0.1, ge=0.0)

    @property
    def total(self) -> float:
        return math.fsum((self.topic, self.language, self.time, self.rating))


class MatchingConfig(BaseModel):
    """Process-wide matching settings. Built once at startup, never mutated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    weights: MatchWeights = Field(default_factory=MatchWeights)
    max_results: int = Field(default=5, ge=1)
    min_score_threshold: float = Field(default=0.3, ge=0.0, le=1.0)


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/tutormatch.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
