"""Paid-resource filtering: decides which price-compared resources are worth suggesting.

Rules:
1. Never recommend a resource that duplicates free content.
2. Tier P3-P5 resources only pass while primary material is scarce, and then
   only when highly relevant.
3. Resources that fill a missing high-priority content type are promoted;
   once primary material is abundant, lower tiers are demoted.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, List, Sequence

from .dedup import DUPLICATE_THRESHOLD, is_duplicate
from .models import (
    ContentItem,
    CoverageAnalysis,
    FilteredPaidResources,
    FilteredResource,
    FilterStats,
    PriceComparison,
)
from .render import render

log = logging.getLogger(__name__)

# Tier P3 and below need at least this relevance to be suggested
RELEVANCE_FLOOR = 0.8
REPORT_MAX_LISTED = 5

# Nearest free content type for each paid resource type
PAID_TO_CONTENT_TYPE: Dict[str, str] = {
    "ebook": "book",
    "audiobook": "book",
    "paper": "paper",
    "interview": "interview",
    "course": "course",
    "database": "database",
    "news_archive": "news",
    "biography_full": "biography",
}


def map_paid_type(paid_type: str) -> str:
    return PAID_TO_CONTENT_TYPE.get(paid_type, paid_type)


def _adjust(comparison: PriceComparison, coverage: CoverageAnalysis) -> PriceComparison:
    priority = comparison.resource.priority
    mapped = map_paid_type(comparison.resource.resource_type)
    fills_gap = mapped in coverage.missing_high_priority_types

    if fills_gap and priority <= 2:
        if comparison.recommendation == "recommend":
            return replace(
                comparison,
                recommendation="highly_recommend",
                recommendation_reason=f"fills {mapped} content gap, {comparison.recommendation_reason}",
            )
    elif coverage.has_enough_primary_content and priority > 2:
        if comparison.recommendation == "highly_recommend":
            return replace(
                comparison,
                recommendation="recommend",
                recommendation_reason="sufficient primary material, optional supplement",
            )
        if comparison.recommendation == "recommend":
            return replace(
                comparison,
                recommendation="optional",
                recommendation_reason="sufficient primary material, not essential",
            )
    return comparison


def filter_paid_resources(
    comparisons: Sequence[PriceComparison],
    free_contents: Sequence[ContentItem],
    coverage: CoverageAnalysis,
    duplicate_threshold: float = DUPLICATE_THRESHOLD,
    relevance_floor: float = RELEVANCE_FLOOR,
) -> FilteredPaidResources:
    """Partition *comparisons* into recommended and filtered.

    Inputs are not mutated; adjusted comparisons are copies.
    """
    recommended: List[PriceComparison] = []
    filtered: List[FilteredResource] = []
    duplicates = 0
    skipped = 0

    for comparison in comparisons:
        resource = comparison.resource

        check = is_duplicate(resource, free_contents, threshold=duplicate_threshold)
        if check.is_duplicate:
            duplicates += 1
            filtered.append(FilteredResource(
                resource=resource,
                reason=f"duplicates free content: {check.match_reason}",
                matched_free_content=check.matched_content,
            ))
            continue

        if resource.priority > 2:
            if coverage.has_enough_primary_content:
                skipped += 1
                filtered.append(FilteredResource(
                    resource=resource,
                    reason=f"enough primary material already, skipping tier P{resource.priority}",
                ))
                continue
            if resource.relevance_score < relevance_floor:
                skipped += 1
                filtered.append(FilteredResource(
                    resource=resource,
                    reason=(
                        f"tier P{resource.priority} with insufficient relevance "
                        f"({resource.relevance_score * 100:.0f}%)"
                    ),
                ))
                continue

        recommended.append(_adjust(comparison, coverage))

    stats = FilterStats(
        total_searched=len(comparisons),
        duplicate_count=duplicates,
        low_priority_skipped=skipped,
        recommended_count=len(recommended),
    )
    log.info(
        "Filtered paid resources: %d searched, %d duplicates, %d low priority, %d recommended",
        stats.total_searched, duplicates, skipped, stats.recommended_count,
    )
    return FilteredPaidResources(recommended=recommended, filtered=filtered, stats=stats)


def generate_report(result: FilteredPaidResources, coverage: CoverageAnalysis) -> str:
    """Markdown summary of coverage, filter counts and the first filtered titles."""
    return render(
        "report.md.j2",
        coverage=coverage,
        covered_types=sorted(coverage.covered_types),
        stats=result.stats,
        filtered=result.filtered,
        max_listed=REPORT_MAX_LISTED,
    )


def user_message(result: FilteredPaidResources, coverage: CoverageAnalysis) -> str:
    """One-line, user-facing summary of the filtering outcome."""
    stats = result.stats

    if not result.recommended:
        if coverage.has_enough_primary_content:
            return "Free material is already rich enough; no paid resources are needed for now."
        if stats.duplicate_count > 0:
            return (
                f"All {stats.total_searched} paid resources found duplicate free content "
                "already collected; nothing to buy."
            )
        return "No paid resources worth recommending were found."

    highly = [c for c in result.recommended if c.recommendation == "highly_recommend"]
    if highly:
        msg = f"Found {len(highly)} highly recommended paid resources."
        if coverage.missing_high_priority_types:
            msg += " They can fill gaps in: " + ", ".join(coverage.missing_high_priority_types) + "."
        return msg

    return (
        f"Recommending {len(result.recommended)} paid resources after filtering out "
        f"{stats.duplicate_count} that duplicate free content."
    )


def summarize_recommended(result: FilteredPaidResources) -> dict:
    """Breakdown of the recommended list by type and level, with total region cost."""
    by_type = Counter(c.resource.resource_type for c in result.recommended)
    by_level = Counter(c.recommendation for c in result.recommended)
    total = sum(
        c.best_region_price.converted_price
        for c in result.recommended
        if c.best_region_price
    )
    return {
        "by_type": dict(by_type),
        "by_recommendation": dict(by_level),
        "total_price_if_buy_all": round(total, 2),
        "highly_recommended_count": by_level.get("highly_recommend", 0),
    }
