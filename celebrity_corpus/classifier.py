"""Reliability tiers for collected content.

Priority 1 is the subject speaking directly (posts, interviews, speeches),
priority 5 is someone else's opinion about the subject. Each tier carries a
weight used downstream for ranking and training-data weighting.
"""

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import ContentItem

log = logging.getLogger(__name__)

Tier = Tuple[int, float]

PRIORITY_CONFIG: Dict[str, dict] = {
    "self_social_media": {"level": 1, "weight": 1.0, "description": "Own social media posts"},
    "self_interview": {"level": 1, "weight": 1.0, "description": "Own interviews and speeches"},
    "authorized_biography": {"level": 2, "weight": 0.8, "description": "Authorized biography"},
    "self_authored": {"level": 2, "weight": 0.8, "description": "Self-authored work"},
    "unauthorized_biography": {"level": 3, "weight": 0.6, "description": "Unauthorized biography"},
    "news_report": {"level": 3, "weight": 0.6, "description": "News report"},
    "wikipedia": {"level": 4, "weight": 0.5, "description": "Wikipedia"},
    "third_party_opinion": {"level": 5, "weight": 0.3, "description": "Third-party opinion"},
}

_PRIORITY_LABELS = {
    1: "P1 - Direct statements (social media, interviews, speeches)",
    2: "P2 - Own works (authorized biographies, self-authored books)",
    3: "P3 - Authoritative third parties (unauthorized biographies, news)",
    4: "P4 - General reference (Wikipedia etc.)",
    5: "P5 - Third-party opinion",
}


def _tier(key: str) -> Tier:
    entry = PRIORITY_CONFIG[key]
    return (entry["level"], entry["weight"])


_DIRECT = _tier("self_interview")
_OWN_WORK = _tier("self_authored")
_THIRD_PARTY = _tier("news_report")
_REFERENCE = _tier("wikipedia")
_OPINION = _tier("third_party_opinion")

_DEFAULT_TIER: Tier = _REFERENCE

# Stage 1: baseline by source. Sources with metadata-dependent rules are
# handled in _source_tier.
_SOURCE_TIERS: Dict[str, Tier] = {
    "twitter": _tier("self_social_media"),
    "youtube": _DIRECT,  # own channel and interview appearances alike
    "podcast": _DIRECT,
    "wikipedia": _REFERENCE,
    "news": _THIRD_PARTY,
}

# Stage 2: content-type overrides, applied after the source baseline.
_TYPE_TIERS: Dict[str, Tier] = {
    "tweet": _tier("self_social_media"),
    "reply": _tier("self_social_media"),
    "interview": _DIRECT,
    "speech": _DIRECT,
    "retweet": (1, 0.9),
    "wiki": _REFERENCE,
    "news": _THIRD_PARTY,
    "article": _THIRD_PARTY,
}


def _source_tier(source: str, content_type: str, metadata: Mapping[str, Any]) -> Tier:
    if source == "book":
        if content_type == "autobiography" or metadata.get("isSelfAuthored"):
            return _OWN_WORK
        if content_type == "biography" and metadata.get("isAuthorized"):
            return _tier("authorized_biography")
        return _tier("unauthorized_biography")

    if source == "blog":
        return _tier("self_social_media") if metadata.get("isOwnBlog") else _OPINION

    return _SOURCE_TIERS.get(source, _DEFAULT_TIER)


def classify(
    source: str,
    content_type: str,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Tier:
    """Return ``(priority, weight)`` for an item.

    The source rule runs first; a matching content-type rule then overwrites it.
    """
    meta = metadata or {}
    tier = _source_tier(source, content_type, meta)

    if content_type == "quote":
        # Quotations only count as direct speech once verified
        tier = (1, 0.95) if meta.get("verified") else _THIRD_PARTY
    elif content_type in _TYPE_TIERS:
        tier = _TYPE_TIERS[content_type]

    return tier


def classify_item(item: ContentItem) -> ContentItem:
    """Return a copy of *item* with priority and weight assigned."""
    priority, weight = classify(item.source, item.content_type, item.metadata)
    return replace(item, priority=priority, weight=weight)


def classify_batch(items: List[ContentItem]) -> List[ContentItem]:
    return [classify_item(item) for item in items]


def priority_description(priority: int) -> str:
    return _PRIORITY_LABELS.get(priority, "Unknown priority")


def _age_days(item_date: datetime, now: datetime) -> float:
    # Naive datetimes are treated as UTC
    if item_date.tzinfo is None:
        item_date = item_date.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - item_date).total_seconds() / 86400


def calculate_score(item: ContentItem, now: Optional[datetime] = None) -> float:
    """Composite score: weight adjusted for content length and recency, in [0, 1]."""
    score = item.weight

    length = len(item.content or "")
    if length > 1000:
        score *= 1.1
    elif length > 500:
        score *= 1.05

    if item.date:
        age = _age_days(item.date, now or datetime.now(timezone.utc))
        if age < 30:
            score *= 1.1
        elif age < 365:
            score *= 1.05

    return min(1.0, max(0.0, score))


def rank_items(items: List[ContentItem], now: Optional[datetime] = None) -> List[ContentItem]:
    """Sort by ascending priority, then descending composite score."""
    now = now or datetime.now(timezone.utc)
    ranked = sorted(items, key=lambda i: (i.priority, -calculate_score(i, now)))
    log.debug("Ranked %d content items", len(ranked))
    return ranked
