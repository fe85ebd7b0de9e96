"""Paid-vs-free deduplication: flags paid resources that repeat content we already have for free."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .models import ContentItem, DuplicateCheckResult, PaidResource
from .similarity import similarity, title_similarity

log = logging.getLogger(__name__)

# A paid resource at or above this similarity to any free item is a duplicate
DUPLICATE_THRESHOLD = 0.7
# Intended cut-off for preview-vs-content matches. Not applied separately:
# content matches feed the same running best as titles.
CONTENT_SIMILARITY_THRESHOLD = 0.6

_SAME_AUTHOR_MIN_TITLE = 0.5
_SAME_AUTHOR_BOOST = 0.2


def _same_author(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b and a.lower() == b.lower())


def is_duplicate(
    resource: PaidResource,
    free_contents: Sequence[ContentItem],
    threshold: float = DUPLICATE_THRESHOLD,
) -> DuplicateCheckResult:
    """Compare *resource* against every free item and keep the best match.

    Three signals per free item: title similarity, preview-vs-content
    similarity, and a same-author boost for similar titles.
    """
    best_match: Optional[ContentItem] = None
    best_score = 0.0
    reason = ""

    for content in free_contents:
        title_sim = title_similarity(resource.title, resource.title_localized, content.title or "")
        if title_sim > best_score:
            best_score = title_sim
            best_match = content
            reason = f"title similarity: {title_sim * 100:.0f}%"

        if resource.preview and content.content:
            content_sim = similarity(resource.preview, content.content)
            if content_sim > best_score:
                best_score = content_sim
                best_match = content
                reason = f"content similarity: {content_sim * 100:.0f}%"

        if _same_author(resource.author, content.author) and title_sim > _SAME_AUTHOR_MIN_TITLE:
            boosted = min(1.0, title_sim + _SAME_AUTHOR_BOOST)
            if boosted >= best_score:
                best_score = boosted
                best_match = content
                reason = "same-author similar work"

    flagged = best_score >= threshold
    if flagged:
        log.debug("Duplicate: '%s' (%.2f, %s)", resource.title, best_score, reason)

    return DuplicateCheckResult(
        is_duplicate=flagged,
        matched_content=best_match,
        similarity_score=best_score,
        match_reason=reason if flagged else "",
    )


def _richness(resource: PaidResource) -> tuple:
    return (len(resource.prices), len(resource.description or ""))


def merge_candidates(resources: List[PaidResource]) -> List[PaidResource]:
    """Collapse candidates that several catalog searches returned as the same product.

    A product is a resource type plus a case-insensitive title, so an ebook and
    an audiobook of the same book stay separate. Keeps the richest record of
    each group (most prices, then longest description) at the position of the
    first occurrence.
    """
    if len(resources) <= 1:
        return resources

    groups: Dict[Tuple[str, str], List[PaidResource]] = {}
    order: List[Tuple[str, str]] = []
    for res in resources:
        key = (res.resource_type, res.title.strip().lower())
        if key not in groups:
            groups[key] = []
            order.append(key)
        groups[key].append(res)

    result: List[PaidResource] = []
    for key in order:
        group = groups[key]
        best = max(group, key=_richness)
        result.append(best)
        if len(group) > 1:
            log.info("Merge: kept '%s', dropped %d repeats", best.title, len(group) - 1)

    log.info("Merged %d → %d paid candidates", len(resources), len(result))
    return result
