from dataclasses import replace
from unittest import mock

from celebrity_corpus.coverage import analyze_coverage
from celebrity_corpus.models import ContentItem, CoverageAnalysis, FilteredPaidResources, FilterStats, PaidResource
from celebrity_corpus.pricing import get_price_comparison
from celebrity_corpus.recommend import (
    _adjust,
    filter_paid_resources,
    generate_report,
    map_paid_type,
    summarize_recommended,
    user_message,
)
from celebrity_corpus.runner import analyze_paid_resources, recommend_paid_resources


def _tweets(n):
    return [
        ContentItem(source="twitter", content_type="tweet", priority=1, weight=1.0, content=f"post number {i}", title=f"tweet {i}")
        for i in range(n)
    ]


def _comparison(title, priority=3, relevance=0.5, quality=0.5, resource_type="ebook", author=None):
    return get_price_comparison(PaidResource(
        title=title,
        resource_type=resource_type,
        priority=priority,
        relevance_score=relevance,
        content_quality=quality,
        author=author,
    ))


def test_map_paid_type():
    assert map_paid_type("ebook") == "book"
    assert map_paid_type("biography_full") == "biography"
    assert map_paid_type("mystery") == "mystery"


def test_duplicate_never_recommended():
    corpus = [ContentItem(source="book", content_type="book", priority=2, weight=0.8, content="", title="My Life")]
    comps = [_comparison("My Life", priority=1, relevance=1.0, quality=1.0)]
    result = filter_paid_resources(comps, corpus, analyze_coverage(corpus))
    assert result.recommended == []
    assert result.filtered[0].reason.startswith("duplicates free content: title similarity")
    assert result.filtered[0].matched_free_content is corpus[0]


def test_low_tier_skipped_when_primary_is_abundant():
    corpus = _tweets(10)
    comps = [_comparison("Unrelated Chronicle", priority=3, relevance=0.5)]
    result = filter_paid_resources(comps, corpus, analyze_coverage(corpus))
    assert result.recommended == []
    assert result.stats.low_priority_skipped == 1
    assert result.filtered[0].reason == "enough primary material already, skipping tier P3"


def test_low_tier_kept_when_relevant_and_primary_scarce():
    comps = [_comparison("Unrelated Chronicle", priority=3, relevance=0.85)]
    result = filter_paid_resources(comps, [], analyze_coverage([]))
    assert [c.resource.title for c in result.recommended] == ["Unrelated Chronicle"]


def test_low_tier_with_low_relevance_skipped():
    comps = [_comparison("Unrelated Chronicle", priority=3, relevance=0.5)]
    result = filter_paid_resources(comps, [], analyze_coverage([]))
    assert result.filtered[0].reason == "tier P3 with insufficient relevance (50%)"


def test_relevance_floor_is_configurable():
    comps = [_comparison("Unrelated Chronicle", priority=3, relevance=0.5)]
    result = filter_paid_resources(comps, [], analyze_coverage([]), relevance_floor=0.4)
    assert result.stats.recommended_count == 1


def test_stats_invariant():
    corpus = [ContentItem(source="book", content_type="book", priority=2, weight=0.8, content="", title="My Life")]
    comps = [
        _comparison("My Life", priority=2, relevance=0.9),
        _comparison("Side Notes", priority=4, relevance=0.2),
        _comparison("Deep Dive", priority=4, relevance=0.95),
        _comparison("Own Words", priority=1, relevance=0.9, quality=0.9),
    ]
    stats = filter_paid_resources(comps, corpus, analyze_coverage(corpus)).stats
    assert stats.total_searched == 4
    assert stats.duplicate_count == 1
    assert stats.low_priority_skipped == 1
    assert stats.recommended_count + stats.duplicate_count + stats.low_priority_skipped == stats.total_searched


def test_gap_filling_upgrade():
    comps = [_comparison("Own Story", priority=2, relevance=0.9, quality=0.5)]
    assert comps[0].recommendation == "recommend"
    result = filter_paid_resources(comps, [], analyze_coverage([]))
    upgraded = result.recommended[0]
    assert upgraded.recommendation == "highly_recommend"
    assert upgraded.recommendation_reason == "fills book content gap, relevant with valuable content"
    assert comps[0].recommendation == "recommend"


def test_downgrade_when_primary_is_abundant():
    coverage = analyze_coverage(_tweets(10))
    highly = replace(_comparison("Deep Dive", priority=3), recommendation="highly_recommend")
    assert _adjust(highly, coverage).recommendation == "recommend"
    rec = replace(_comparison("Deep Dive", priority=3), recommendation="recommend")
    adjusted = _adjust(rec, coverage)
    assert adjusted.recommendation == "optional"
    assert adjusted.recommendation_reason == "sufficient primary material, not essential"


def test_end_to_end_identical_title():
    corpus = [ContentItem(source="book", content_type="book", priority=2, weight=0.8, content="", title="My Life", author="X")]
    comps = [_comparison("My Life", priority=2, relevance=0.9, author="X")]
    result = analyze_paid_resources(corpus, comps)
    assert result.recommended == []
    assert len(result.filtered) == 1
    assert result.stats.duplicate_count == 1
    assert "Duplicates of free content: 1" in result.report


def test_end_to_end_unrelated_course():
    comps = [_comparison("Unrelated Course", priority=4, relevance=0.3, resource_type="course")]
    result = analyze_paid_resources([], comps)
    assert result.recommended == []
    assert result.stats.low_priority_skipped == 1
    assert result.stats.duplicate_count == 0


def test_recommend_runs_coverage_once():
    corpus = _tweets(3)
    candidates = [PaidResource(title="Own Story", resource_type="ebook", priority=2, relevance_score=0.9)]
    with mock.patch("celebrity_corpus.runner.analyze_coverage", wraps=analyze_coverage) as spy:
        result, coverage = recommend_paid_resources(corpus, candidates)
    assert spy.call_count == 1
    assert coverage.total_count == 3
    assert coverage.has_enough_primary_content is False
    assert result.stats.total_searched == 1


def test_report_lists_first_five_filtered():
    comps = [_comparison(f"Book {i}", priority=5, relevance=0.1) for i in range(7)]
    coverage = analyze_coverage([])
    result = filter_paid_resources(comps, [], coverage)
    report = generate_report(result, coverage)
    assert report.startswith("## Paid Resource Analysis Report")
    assert "- Covered types: none" in report
    assert "5. **Book 4**" in report
    assert "Book 5" not in report
    assert "... and 2 more" in report


def test_report_without_filtered_section():
    coverage = analyze_coverage(_tweets(2))
    result = FilteredPaidResources(recommended=[], filtered=[], stats=FilterStats())
    report = generate_report(result, coverage)
    assert "### Filtered resources" not in report
    assert "- Covered types: tweet" in report
    assert "- Primary material (P1+P2): 2" in report


def _coverage(enough, missing=()):
    return CoverageAnalysis(covered_types=set(), by_priority={}, missing_high_priority_types=list(missing),
                            total_count=0, has_enough_primary_content=enough)


def test_user_message_variants():
    empty = FilteredPaidResources(recommended=[], filtered=[], stats=FilterStats(total_searched=3, duplicate_count=3))
    assert user_message(empty, _coverage(True)).startswith("Free material is already rich enough")
    assert user_message(empty, _coverage(False)).startswith("All 3 paid resources")
    none_found = FilteredPaidResources(recommended=[], filtered=[], stats=FilterStats())
    assert user_message(none_found, _coverage(False)) == "No paid resources worth recommending were found."

    highly = replace(_comparison("Own Story", priority=1), recommendation="highly_recommend")
    with_highly = FilteredPaidResources(recommended=[highly], filtered=[], stats=FilterStats(recommended_count=1))
    msg = user_message(with_highly, _coverage(False, ["speech", "podcast"]))
    assert msg == "Found 1 highly recommended paid resources. They can fill gaps in: speech, podcast."

    plain = FilteredPaidResources(recommended=[_comparison("Notes", priority=2, relevance=0.7)], filtered=[],
                                  stats=FilterStats(recommended_count=1, duplicate_count=2))
    assert user_message(plain, _coverage(False)) == (
        "Recommending 1 paid resources after filtering out 2 that duplicate free content."
    )


def test_summarize_recommended():
    comps = [_comparison("Own Story", priority=2, relevance=0.9), _comparison("Class", priority=2, relevance=0.9, resource_type="course")]
    result = filter_paid_resources(comps, [], analyze_coverage([]))
    summary = summarize_recommended(result)
    assert summary["by_type"] == {"ebook": 1, "course": 1}
    assert summary["total_price_if_buy_all"] == 0
