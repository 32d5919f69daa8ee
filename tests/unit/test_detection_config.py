from __future__ import annotations

from pathlib import Path

from tabwise.application.services.detection_config import (
    DetectionConfig,
    ScoringPolicy,
    load_detection_config,
)
from tabwise.application.services.domain_context_analyzer import DomainContextAnalyzer
from tabwise.domain.hoarder import DomainType


def _write(tmp_path: Path, text: str) -> str:
    path = tmp_path / "detection.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults_without_file(monkeypatch):
    monkeypatch.delenv("TABWISE_DETECTION_CONFIG", raising=False)
    config = load_detection_config()
    assert config == DetectionConfig()
    assert config.scoring.hoarder_threshold == 60
    assert config.thresholds.min_visits_per_day == 0.43


def test_yaml_overrides_sections(tmp_path):
    path = _write(
        tmp_path,
        """
domains:
  content_sites: [example.com]
scoring:
  hoarder_threshold: 70
  age_bands: [[10, 60], [1, 5]]
thresholds:
  min_visits_per_day: 0.5
  not_a_setting: 3
""",
    )
    config = load_detection_config(path)

    assert config.domains.content_sites == ("example.com",)
    assert config.domains.code_platforms == ("github.com", "gitlab.com", "bitbucket.org")
    assert config.scoring.hoarder_threshold == 70
    assert config.scoring.age_bands == ((10, 60), (1, 5))
    assert config.scoring.single_visit_points == ScoringPolicy().single_visit_points
    assert config.thresholds.min_visits_per_day == 0.5
    assert DomainContextAnalyzer(config.domains).classify("example.com") is DomainType.CONTENT_SITE


def test_env_var_points_at_file(tmp_path, monkeypatch):
    monkeypatch.setenv("TABWISE_DETECTION_CONFIG", _write(tmp_path, "scoring:\n  strict_bonus: 5\n"))
    assert load_detection_config().scoring.strict_bonus == 5


def test_unreadable_file_falls_back_to_defaults(tmp_path):
    assert load_detection_config(str(tmp_path / "missing.yaml")) == DetectionConfig()
    assert load_detection_config(_write(tmp_path, "- just\n- a list\n")) == DetectionConfig()
    assert load_detection_config(_write(tmp_path, "scoring:\n  hoarder_threshold: high\n")) == DetectionConfig()
