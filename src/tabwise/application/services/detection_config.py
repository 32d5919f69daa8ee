# src/tabwise/application/services/detection_config.py
"""
Detection policy tables.

Domain lists, scoring weights and serial-opener thresholds are immutable
values injected into the detectors. Defaults live here; a YAML file can
override any section:

    domains:
      content_sites: [medium.com, dev.to]
    scoring:
      hoarder_threshold: 70
    thresholds:
      min_visits_per_day: 0.5

The file path comes from the ``config_path`` argument or the
``TABWISE_DETECTION_CONFIG`` environment variable.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Band = Tuple[float, int]


@dataclass(frozen=True)
class DomainCatalog:
    """
    Domain pattern tables.

    Pattern forms: ``".local"`` matches by suffix, ``"docs."`` matches by
    prefix, anything else matches the domain itself or any subdomain of it.
    """

    universal_whitelist: Tuple[str, ...] = (
        "mail.google.com",
        "gmail.com",
        "calendar.google.com",
        "outlook.com",
        "outlook.live.com",
    )
    development: Tuple[str, ...] = (
        "localhost",
        "127.0.0.1",
        "0.0.0.0",
        ".local",
        ".test",
        ".dev",
        "postman.co",
        "app.insomnia.rest",
        "httpie.io",
    )
    educational: Tuple[str, ...] = (
        "courses.",
        "learn.",
        "academy.",
        "udemy.com",
        "coursera.org",
        "edx.org",
        "pluralsight.com",
        "egghead.io",
        "frontendmasters.com",
        "udacity.com",
        "skillshare.com",
        "datacamp.com",
        "codecademy.com",
    )
    productivity: Tuple[str, ...] = (
        "mail.google.com",
        "gmail.com",
        "outlook.com",
        "calendar.google.com",
        "notion.so",
        "slack.com",
        "discord.com",
        "teams.microsoft.com",
        "todoist.com",
        "trello.com",
        "asana.com",
        "linear.app",
        "figma.com",
        "miro.com",
    )
    content_sites: Tuple[str, ...] = (
        "medium.com",
        "dev.to",
        "substack.com",
        "news.ycombinator.com",
        "reddit.com",
        "twitter.com",
        "x.com",
        "youtube.com",
        "vimeo.com",
        "instagram.com",
    )
    code_platforms: Tuple[str, ...] = ("github.com", "gitlab.com", "bitbucket.org")
    documentation: Tuple[str, ...] = (
        "stackoverflow.com",
        "docs.",
        "developer.",
        "api.",
        "readthedocs.io",
    )


@dataclass(frozen=True)
class ScoringPolicy:
    """Hoarder scoring weights. Bands are checked in the order given."""

    # (minimum days, points), highest band first
    age_bands: Tuple[Band, ...] = ((14.0, 50), (7.0, 40), (3.0, 25), (1.0, 10))
    inactivity_bands: Tuple[Band, ...] = ((2.0, 30), (1.0, 15))
    single_visit_points: int = 20
    # (rate strictly below, points), lowest bound first
    engagement_bands: Tuple[Band, ...] = ((0.05, 15), (0.10, 10), (0.20, 5))
    strict_bonus: int = 15
    content_site_bonus: int = 15
    recency_window_days: float = 0.25
    recency_penalty: int = -25
    hoarder_threshold: int = 60
    high_confidence_threshold: int = 80
    low_confidence_threshold: int = 40


@dataclass(frozen=True)
class SerialOpenerThresholds:
    min_visits_per_day: float = 0.43
    max_total_engagement_seconds: int = 120
    absolute_min_visits: int = 2
    min_period_days: float = 0.5


@dataclass(frozen=True)
class DetectionConfig:
    domains: DomainCatalog = field(default_factory=DomainCatalog)
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    thresholds: SerialOpenerThresholds = field(default_factory=SerialOpenerThresholds)


def _coerce(current: Any, value: Any) -> Any:
    if isinstance(current, tuple):
        items = []
        for item in value or ():
            items.append(tuple(item) if isinstance(item, (list, tuple)) else item)
        return tuple(items)
    if isinstance(current, bool):
        return bool(value)
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return value


def _merge(base: Any, overrides: Optional[Dict[str, Any]]) -> Any:
    if not isinstance(overrides, dict):
        return base
    known = {f.name for f in fields(base)}
    changes = {}
    for key, value in overrides.items():
        if key not in known:
            logger.warning(f"Ignoring unknown detection config key: {key}")
            continue
        changes[key] = _coerce(getattr(base, key), value)
    return replace(base, **changes)


def load_detection_config(config_path: Optional[str] = None) -> DetectionConfig:
    """Build a DetectionConfig from defaults plus an optional YAML file."""
    config = DetectionConfig()
    path = config_path or os.getenv("TABWISE_DETECTION_CONFIG")
    if not path:
        return config

    try:
        import yaml

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        if raw and isinstance(raw, dict):
            config = DetectionConfig(
                domains=_merge(config.domains, raw.get("domains")),
                scoring=_merge(config.scoring, raw.get("scoring")),
                thresholds=_merge(config.thresholds, raw.get("thresholds")),
            )
            logger.info(f"Loaded detection config from {path}")
    except Exception as e:
        logger.warning(f"Failed to load detection config from {path}: {e}")
        return DetectionConfig()
    return config
