"""Multi-platform price comparison for paid resources."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote_plus

from .models import (
    FreeAlternative,
    PaidResource,
    Platform,
    PriceComparison,
    PriceInfo,
    RECOMMENDATION_LEVELS,
)

log = logging.getLogger(__name__)

REFERENCE_CURRENCY = "CNY"

# Static rates into the reference currency
EXCHANGE_RATES: Dict[str, float] = {
    "USD": 7.2,
    "EUR": 7.8,
    "GBP": 9.1,
    "CNY": 1.0,
}

# Payment methods that make a platform usable from the target region
PREFERRED_PAYMENTS = frozenset({"alipay", "wechat", "unionpay"})

_CARDS = ["visa", "mastercard", "paypal"]


def _platform(pid, name, url, region, payments, accessible, currency, description=None):
    return Platform(
        id=pid,
        name=name,
        url=url,
        region=region,
        supported_payments=list(payments),
        region_accessible=accessible,
        needs_vpn=not accessible,
        currency=currency,
        description=description,
    )


PLATFORMS: Dict[str, Platform] = {
    # Domestic platforms
    "douban_read": _platform("douban_read", "Douban Read", "https://read.douban.com", "cn", ["alipay", "wechat"], True, "CNY"),
    "weread": _platform("weread", "WeRead", "https://weread.qq.com", "cn", ["wechat"], True, "CNY"),
    "jd_read": _platform("jd_read", "JD Read", "https://e.jd.com", "cn", ["alipay", "wechat", "unionpay"], True, "CNY"),
    "dangdang": _platform("dangdang", "Dangdang", "https://e.dangdang.com", "cn", ["alipay", "wechat", "unionpay"], True, "CNY"),
    "cnki": _platform("cnki", "CNKI", "https://www.cnki.net", "cn", ["alipay", "wechat", "unionpay"], True, "CNY", "Academic papers"),
    "ximalaya": _platform("ximalaya", "Ximalaya", "https://www.ximalaya.com", "cn", ["alipay", "wechat"], True, "CNY", "Audiobooks and podcasts"),
    "amazon_cn": _platform("amazon_cn", "Amazon China", "https://www.amazon.cn", "cn", ["alipay", "visa", "mastercard"], True, "CNY"),
    # International platforms
    "google_play_books": _platform("google_play_books", "Google Play Books", "https://play.google.com/store/books", "global", _CARDS, False, "USD"),
    "amazon_com": _platform("amazon_com", "Amazon US", "https://www.amazon.com", "us", _CARDS, True, "USD"),
    "audible": _platform("audible", "Audible", "https://www.audible.com", "global", _CARDS, True, "USD", "Audiobooks"),
    "scribd": _platform("scribd", "Scribd", "https://www.scribd.com", "global", _CARDS, True, "USD", "Ebook and audiobook subscription"),
    "springer": _platform("springer", "Springer", "https://www.springer.com", "global", _CARDS, True, "USD", "Academic papers and books"),
    "masterclass": _platform("masterclass", "MasterClass", "https://www.masterclass.com", "global", _CARDS, True, "USD", "Celebrity classes"),
    "coursera": _platform("coursera", "Coursera", "https://www.coursera.org", "global", _CARDS + ["alipay"], True, "USD", "Online courses"),
    "udemy": _platform("udemy", "Udemy", "https://www.udemy.com", "global", _CARDS + ["alipay"], True, "USD"),
}

PriceLookup = Callable[[PaidResource, Platform], Optional[PriceInfo]]


@dataclass
class PriceLookupConfig:
    """Platforms to query for one resource type and the function that queries them."""
    platforms: List[Platform]
    lookup: PriceLookup


def convert_price(price: float, currency: str) -> float:
    return price * EXCHANGE_RATES.get(currency, 1.0)


def make_price_info(platform: Platform, price: float, url: str, **overrides) -> PriceInfo:
    """Build a PriceInfo with platform defaults; *overrides* win."""
    currency = overrides.pop("currency", platform.currency)
    info = PriceInfo(
        platform=platform,
        url=url,
        price=price,
        currency=currency,
        converted_price=convert_price(price, currency),
        available=True,
        region_accessible=platform.region_accessible,
        supported_payments=list(platform.supported_payments),
        last_checked=datetime.now(timezone.utc),
    )
    for key, value in overrides.items():
        setattr(info, key, value)
    return info


def compare_prices(
    resource: PaidResource,
    platforms: Iterable[Platform],
    lookup: PriceLookup,
) -> List[PriceInfo]:
    """Query every platform; a failing platform just contributes no price."""
    prices: List[PriceInfo] = []
    for platform in platforms:
        try:
            info = lookup(resource, platform)
        except Exception as e:
            log.warning("Price lookup on %s failed for '%s': %s", platform.name, resource.title, e)
            continue
        if info is not None:
            prices.append(info)
    return sorted(prices, key=lambda p: p.converted_price)


def best_price(prices: List[PriceInfo]) -> Optional[PriceInfo]:
    """Cheapest available quote; *prices* must already be sorted."""
    return next((p for p in prices if p.available), None)


def best_region_price(
    prices: List[PriceInfo],
    preferred: Iterable[str] = PREFERRED_PAYMENTS,
) -> Optional[PriceInfo]:
    """Cheapest quote purchasable from the target region.

    Prefers quotes that accept a local payment method, then falls back to any
    available region-accessible quote.
    """
    preferred = set(preferred)
    accessible = [p for p in prices if p.available and p.region_accessible]
    for p in accessible:
        if preferred.intersection(p.supported_payments):
            return p
    return accessible[0] if accessible else None


def recommend(resource: PaidResource, region_price: Optional[PriceInfo]) -> Tuple[str, str]:
    """Seed recommendation level and reason before coverage adjustments."""
    cost = region_price.converted_price if region_price else None

    if resource.relevance_score >= 0.8 and resource.content_quality >= 0.7 and resource.priority <= 2:
        if cost is not None and cost <= 100:
            return "highly_recommend", "highly relevant own work at a fair price, strongly recommended"
        return "highly_recommend", "highly relevant own work, essential to understanding the subject"

    if resource.relevance_score >= 0.6 and resource.content_quality >= 0.5:
        if cost is not None and cost <= 50:
            return "recommend", "relevant and inexpensive, recommended"
        return "recommend", "relevant with valuable content"

    if resource.relevance_score >= 0.4:
        return "optional", "moderately relevant, useful as supplementary material"

    return "skip", "low relevance, suggest skipping"


def free_alternatives(resource: PaidResource) -> List[FreeAlternative]:
    """Places to look for a free copy before buying."""
    q = quote_plus(resource.title)

    if resource.resource_type == "ebook":
        return [
            FreeAlternative("Open Library", "Look for a free edition on Open Library", f"https://openlibrary.org/search?q={q}"),
            FreeAlternative("Project Gutenberg", "Public-domain books (older works)", f"https://www.gutenberg.org/ebooks/search/?query={q}"),
            FreeAlternative("Internet Archive", "Free lending from the Internet Archive", f"https://archive.org/search.php?query={q}"),
        ]
    if resource.resource_type == "audiobook":
        return [
            FreeAlternative("LibriVox", "Volunteer-read public-domain audiobooks", f"https://librivox.org/search?q={q}"),
            FreeAlternative("YouTube", "Search YouTube for the audiobook", f"https://www.youtube.com/results?search_query={quote_plus(resource.title + ' audiobook')}"),
        ]
    if resource.resource_type == "course":
        return [
            FreeAlternative("YouTube", "Search for free tutorial videos", f"https://www.youtube.com/results?search_query={q}"),
            FreeAlternative("MIT OpenCourseWare", "MIT open courses", f"https://ocw.mit.edu/search/?q={q}"),
            FreeAlternative("Khan Academy", "Free Khan Academy courses", f"https://www.khanacademy.org/search?page_search_query={q}"),
        ]
    return []


def get_price_comparison(
    resource: PaidResource,
    lookups: Optional[Dict[str, PriceLookupConfig]] = None,
) -> PriceComparison:
    """Price one resource, using attached prices or querying its type's platforms."""
    prices = list(resource.prices)
    config = (lookups or {}).get(resource.resource_type)
    if not prices and config is not None:
        prices = compare_prices(resource, config.platforms, config.lookup)
    prices.sort(key=lambda p: p.converted_price)

    region = best_region_price(prices)
    level, reason = recommend(resource, region)

    return PriceComparison(
        resource=resource,
        best_price=best_price(prices),
        best_region_price=region,
        all_prices=prices,
        recommendation=level,
        recommendation_reason=reason,
        free_alternatives=free_alternatives(resource),
    )


def _comparison_sort_key(c: PriceComparison) -> tuple:
    level = RECOMMENDATION_LEVELS.index(c.recommendation)
    price = c.best_region_price.converted_price if c.best_region_price else float("inf")
    return (level, price)


def batch_price_comparison(
    resources: List[PaidResource],
    lookups: Optional[Dict[str, PriceLookupConfig]] = None,
) -> List[PriceComparison]:
    """Compare every resource, strongest recommendation and cheapest region price first."""
    comparisons: List[PriceComparison] = []
    for res in resources:
        try:
            comparisons.append(get_price_comparison(res, lookups))
        except Exception as e:
            log.warning("Price comparison failed for '%s': %s", res.title, e)

    comparisons.sort(key=_comparison_sort_key)
    log.info("Priced %d of %d paid resources", len(comparisons), len(resources))
    return comparisons
