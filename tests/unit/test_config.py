"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from tutormatch.core.config import DatabaseConfig, MatchingConfig, MatchWeights, Settings


class TestMatchWeights:
    def test_defaults(self) -> None:
        w = MatchWeights()
        assert (w.topic, w.language, w.time, w.rating) == (0.5, 0.2, 0.2, 0.1)

    def test_default_total_is_one(self) -> None:
        assert MatchWeights().total == 1.0

    def test_negative_weight_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MatchWeights(language=-0.1)

    def test_unknown_dimension_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MatchWeights(gender=0.1)  # type: ignore[call-arg]

    def test_need_not_sum_to_one(self) -> None:
        w = MatchWeights(topic=1.0, language=1.0, time=1.0, rating=1.0)
        assert w.total == 4.0


class TestMatchingConfig:
    def test_defaults(self) -> None:
        c = MatchingConfig()
        assert c.max_results == 5
        assert c.min_score_threshold == 0.3
        assert c.weights == MatchWeights()

    def test_max_results_min_one(self) -> None:
        with pytest.raises(ValidationError):
            MatchingConfig(max_results=0)

    def test_threshold_bounds(self) -> None:
        with pytest.raises(ValidationError):
            MatchingConfig(min_score_threshold=-0.1)
        with pytest.raises(ValidationError):
            MatchingConfig(min_score_threshold=1.5)

    def test_frozen(self) -> None:
        c = MatchingConfig()
        with pytest.raises(ValidationError):
            c.max_results = 10  # type: ignore[misc]

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MatchingConfig.model_validate({"max_results": 3, "cache_ttl": 60})


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.database == DatabaseConfig()
        assert s.matching == MatchingConfig()

    def test_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(dedent("""\
            database:
              path: /tmp/tm.db
            matching:
              weights:
                topic: 0.4
                language: 0.3
                time: 0.2
                rating: 0.1
              max_results: 3
              min_score_threshold: 0.5
        """))
        s = Settings.from_yaml(config_file)
        assert s.database.path == "/tmp/tm.db"
        assert s.matching.max_results == 3
        assert s.matching.min_score_threshold == 0.5
        assert s.matching.weights.language == 0.3

    def test_from_yaml_partial_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("matching:\n  max_results: 2\n")
        s = Settings.from_yaml(config_file)
        assert s.matching.max_results == 2
        assert s.matching.weights.topic == 0.5

    def test_from_yaml_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        assert Settings.from_yaml(config_file) == Settings()

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_from_yaml_invalid_values(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("matching:\n  max_results: 0\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(config_file)

    def test_repo_settings_file_loads(self) -> None:
        path = Path(__file__).resolve().parents[2] / "config" / "settings.yaml"
        s = Settings.from_yaml(path)
        assert s.matching == MatchingConfig()
