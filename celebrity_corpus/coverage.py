"""Coverage summary of the free corpus already collected for a subject."""

import logging
from typing import Dict, Iterable, Set

from .models import ContentItem, CoverageAnalysis

log = logging.getLogger(__name__)

# Content types we expect a well-covered subject to have (P1/P2 material)
HIGH_PRIORITY_TYPES = ["tweet", "interview", "speech", "biography", "book", "podcast"]

PRIMARY_CONTENT_THRESHOLD = 10


def analyze_coverage(
    items: Iterable[ContentItem],
    primary_threshold: int = PRIMARY_CONTENT_THRESHOLD,
) -> CoverageAnalysis:
    covered: Set[str] = set()
    by_priority: Dict[int, int] = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    total = 0

    for item in items:
        total += 1
        covered.add(item.content_type)
        by_priority[item.priority] = by_priority.get(item.priority, 0) + 1

    missing = [t for t in HIGH_PRIORITY_TYPES if t not in covered]
    primary = by_priority[1] + by_priority[2]

    log.debug(
        "Coverage: %d items, %d primary, missing %s", total, primary, missing,
    )
    return CoverageAnalysis(
        covered_types=covered,
        by_priority=by_priority,
        missing_high_priority_types=missing,
        total_count=total,
        has_enough_primary_content=primary >= primary_threshold,
    )
