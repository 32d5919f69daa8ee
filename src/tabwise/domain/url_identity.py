from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List
from urllib.parse import urlsplit, urlunsplit

if TYPE_CHECKING:
    from tabwise.domain.browsing import PageVisit

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "utm_id",
        "fbclid",
        "gclid",
        "msclkid",
        "mc_eid",
        "_ga",
        "ref",
        "ref_src",
    }
)


def is_tracking_param(key: str) -> bool:
    lowered = key.lower()
    return lowered in TRACKING_PARAMS or lowered.startswith("utm_")


def _strip_tracking(query: str) -> str:
    kept = []
    for piece in query.split("&"):
        if not piece:
            continue
        key = piece.split("=", 1)[0]
        if is_tracking_param(key):
            continue
        kept.append(piece)
    return "&".join(kept)


def canonicalize_url(url: str | None) -> str:
    """
    Collapse URL variants onto one identity.

    Tracking parameters, the fragment and trailing path slashes are removed;
    scheme and host are lower-cased. Remaining query pieces keep their
    original text and order, so the result is stable under re-application.
    Input that does not parse as an absolute URL is returned stripped.
    """
    text = (url or "").strip()
    if not text:
        return ""

    try:
        parts = urlsplit(text)
    except ValueError:
        return text
    if not parts.scheme or not parts.netloc:
        return text

    path = parts.path.rstrip("/")
    query = _strip_tracking(parts.query)
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


def url_path(url: str | None) -> str:
    try:
        return urlsplit((url or "").strip()).path or ""
    except ValueError:
        return ""


def group_by_canonical_url(visits: Iterable[PageVisit]) -> Dict[str, List[PageVisit]]:
    """Group visits by canonical URL, keeping first-seen order."""
    groups: Dict[str, List[PageVisit]] = {}
    for visit in visits:
        groups.setdefault(canonicalize_url(visit.url), []).append(visit)
    return groups
