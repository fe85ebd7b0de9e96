"""Token-overlap similarity used for paid-vs-free duplicate detection."""

import re
from typing import Optional, Set

# Keep word characters, whitespace and CJK ideographs; drop everything else.
_STRIP_RE = re.compile(r"[^\w\s\u4e00-\u9fff]")


def normalize_tokens(text: Optional[str]) -> Set[str]:
    """Lower-case, strip punctuation, split on whitespace, drop 1-char tokens."""
    if not text:
        return set()
    cleaned = _STRIP_RE.sub("", text.lower())
    return {tok for tok in cleaned.split() if len(tok) > 1}


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """Jaccard similarity of the normalized token sets of *a* and *b*.

    Returns 0.0 when either side is empty or normalizes to nothing.
    """
    if not a or not b:
        return 0.0

    words_a = normalize_tokens(a)
    words_b = normalize_tokens(b)
    if not words_a or not words_b:
        return 0.0

    intersection = len(words_a & words_b)
    union = len(words_a) + len(words_b) - intersection
    return intersection / union


def title_similarity(
    title: Optional[str],
    title_localized: Optional[str],
    free_title: Optional[str],
) -> float:
    """Best similarity between a free item's title and either paid title."""
    scores = []
    if title and free_title:
        scores.append(similarity(title, free_title))
    if title_localized and free_title:
        scores.append(similarity(title_localized, free_title))
    return max(scores, default=0.0)
