"""JSON payload conversion for the CLI and the HTTP handler."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .classifier import classify
from .models import (
    Celebrity,
    ContentItem,
    CoverageAnalysis,
    FilteredPaidResources,
    FilteredResource,
    PaidResource,
    Platform,
    PriceComparison,
    PAID_SOURCE_TYPES,
    PAYMENT_METHODS,
    PURCHASE_TYPES,
    PriceInfo,
)
from .pricing import PLATFORMS, convert_price
from .recommend import summarize_recommended, user_message

_DATE_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Best-effort parse of an ISO-ish date string; unparseable values become None."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+0000"
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _format_date(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _require(data: Dict[str, Any], key: str, kind: str, allow_empty: bool = False) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{kind} must be an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or (value == "" and not allow_empty):
        raise ValueError(f"{kind} is missing required field '{key}'")
    return value


def _number(data: Dict[str, Any], key: str, default, cast, kind: str):
    """Numeric field; JSON null counts as absent."""
    value = data.get(key)
    if value is None:
        return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"{kind} field '{key}' must be a number, got {value!r}")


def _one_of(value: str, allowed, key: str, kind: str) -> str:
    if value not in allowed:
        raise ValueError(f"{kind} field '{key}' must be one of {allowed}, got {value!r}")
    return value


# ── Inbound ──


def celebrity_from_dict(data: Dict[str, Any]) -> Celebrity:
    return Celebrity(
        name=_require(data, "name", "celebrity"),
        aliases=list(data.get("aliases") or []),
        description=data.get("description"),
        id=data.get("id"),
    )


def content_from_dict(data: Dict[str, Any]) -> ContentItem:
    """Build a ContentItem; priority and weight are classified when absent."""
    content = _require(data, "content", "content item", allow_empty=True)
    source = data.get("source", "news")
    content_type = data.get("content_type") or data.get("type") or "other"
    metadata = dict(data.get("metadata") or {})

    priority = _number(data, "priority", None, int, "content item")
    weight = _number(data, "weight", None, float, "content item")
    if priority is None or weight is None:
        priority, weight = classify(source, content_type, metadata)

    return ContentItem(
        source=source,
        content_type=content_type,
        priority=priority,
        weight=weight,
        content=content,
        title=data.get("title"),
        source_url=data.get("source_url"),
        summary=data.get("summary"),
        date=parse_date(data.get("date")),
        author=data.get("author"),
        language=data.get("language", "en"),
        metadata=metadata,
        id=data.get("id"),
    )


def _platform_from(value: Any) -> Platform:
    if isinstance(value, str):
        if value not in PLATFORMS:
            raise ValueError(f"unknown platform '{value}'")
        return PLATFORMS[value]
    pid = _require(value, "id", "platform")
    known = PLATFORMS.get(pid)
    return Platform(
        id=pid,
        name=value.get("name", known.name if known else pid),
        url=value.get("url", known.url if known else ""),
        region=value.get("region", known.region if known else "global"),
        supported_payments=list(value.get("supported_payments", known.supported_payments if known else [])),
        region_accessible=value.get("region_accessible", known.region_accessible if known else True),
        needs_vpn=value.get("needs_vpn", known.needs_vpn if known else False),
        currency=value.get("currency", known.currency if known else "USD"),
        description=value.get("description", known.description if known else None),
    )


def price_from_dict(data: Dict[str, Any]) -> PriceInfo:
    platform = _platform_from(_require(data, "platform", "price"))
    _require(data, "price", "price")
    price = _number(data, "price", None, float, "price")
    currency = data.get("currency") or platform.currency
    converted = _number(data, "converted_price", None, float, "price")
    payments = list(data.get("supported_payments") or platform.supported_payments)
    for method in payments:
        _one_of(method, PAYMENT_METHODS, "supported_payments", "price")
    return PriceInfo(
        platform=platform,
        url=data.get("url") or platform.url,
        price=price,
        currency=currency,
        converted_price=converted if converted is not None else convert_price(price, currency),
        purchase_type=_one_of(data.get("purchase_type") or "buy", PURCHASE_TYPES, "purchase_type", "price"),
        original_price=data.get("original_price"),
        rent_duration=data.get("rent_duration"),
        subscription_period=data.get("subscription_period"),
        format=data.get("format"),
        quality=data.get("quality"),
        available=data.get("available", True),
        region_accessible=data.get("region_accessible", platform.region_accessible),
        supported_payments=payments,
        last_checked=parse_date(data.get("last_checked")),
    )


def resource_from_dict(data: Dict[str, Any]) -> PaidResource:
    title = _require(data, "title", "paid resource")
    resource_type = data.get("resource_type") or data.get("type") or "ebook"
    return PaidResource(
        title=title,
        resource_type=_one_of(resource_type, PAID_SOURCE_TYPES, "resource_type", "paid resource"),
        title_localized=data.get("title_localized"),
        description=data.get("description"),
        author=data.get("author"),
        publish_date=parse_date(data.get("publish_date")),
        preview=data.get("preview"),
        preview_url=data.get("preview_url"),
        relevance_score=_number(data, "relevance_score", 0.5, float, "paid resource"),
        content_quality=_number(data, "content_quality", 0.5, float, "paid resource"),
        priority=_number(data, "priority", 3, int, "paid resource"),
        weight=_number(data, "weight", 0.6, float, "paid resource"),
        prices=[price_from_dict(p) for p in data.get("prices") or []],
        metadata=dict(data.get("metadata") or {}),
        id=data.get("id"),
    )


def _unwrap(data: Any, key: str) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise ValueError(f"expected a list of {key} or an object with a '{key}' list")
    return data


def load_corpus(data: Any) -> List[ContentItem]:
    """Parse free content from a bare list or ``{"contents": [...]}``."""
    return [content_from_dict(d) for d in _unwrap(data, "contents")]


def load_candidates(data: Any) -> List[PaidResource]:
    """Parse paid candidates from a bare list or ``{"candidates": [...]}``."""
    return [resource_from_dict(d) for d in _unwrap(data, "candidates")]


# ── Outbound ──


def celebrity_to_dict(celebrity: Celebrity) -> Dict[str, Any]:
    return {
        "id": celebrity.id,
        "name": celebrity.name,
        "aliases": list(celebrity.aliases),
        "description": celebrity.description,
    }


def content_to_dict(item: ContentItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "source": item.source,
        "content_type": item.content_type,
        "priority": item.priority,
        "weight": item.weight,
        "title": item.title,
        "content": item.content,
        "summary": item.summary,
        "source_url": item.source_url,
        "date": _format_date(item.date),
        "author": item.author,
        "language": item.language,
        "metadata": item.metadata,
    }


def price_to_dict(price: Optional[PriceInfo]) -> Optional[Dict[str, Any]]:
    if price is None:
        return None
    return {
        "platform": price.platform.id,
        "platform_name": price.platform.name,
        "url": price.url,
        "price": price.price,
        "currency": price.currency,
        "converted_price": round(price.converted_price, 2),
        "purchase_type": price.purchase_type,
        "format": price.format,
        "available": price.available,
        "region_accessible": price.region_accessible,
        "supported_payments": list(price.supported_payments),
    }


def resource_to_dict(resource: PaidResource) -> Dict[str, Any]:
    return {
        "id": resource.id,
        "title": resource.title,
        "title_localized": resource.title_localized,
        "resource_type": resource.resource_type,
        "author": resource.author,
        "description": resource.description,
        "publish_date": _format_date(resource.publish_date),
        "preview": resource.preview,
        "preview_url": resource.preview_url,
        "relevance_score": resource.relevance_score,
        "content_quality": resource.content_quality,
        "priority": resource.priority,
        "weight": resource.weight,
        "metadata": resource.metadata,
    }


def comparison_to_dict(comparison: PriceComparison) -> Dict[str, Any]:
    return {
        "resource": resource_to_dict(comparison.resource),
        "best_price": price_to_dict(comparison.best_price),
        "best_region_price": price_to_dict(comparison.best_region_price),
        "all_prices": [price_to_dict(p) for p in comparison.all_prices],
        "recommendation": comparison.recommendation,
        "recommendation_reason": comparison.recommendation_reason,
        "free_alternatives": [
            {"source": a.source, "description": a.description, "url": a.url}
            for a in comparison.free_alternatives
        ],
    }


def filtered_to_dict(item: FilteredResource) -> Dict[str, Any]:
    matched = item.matched_free_content
    return {
        "resource": resource_to_dict(item.resource),
        "reason": item.reason,
        "matched_free_content": (
            {"id": matched.id, "title": matched.title, "source": matched.source}
            if matched else None
        ),
    }


def coverage_to_dict(coverage: CoverageAnalysis) -> Dict[str, Any]:
    return {
        "covered_types": sorted(coverage.covered_types),
        "by_priority": {str(k): v for k, v in sorted(coverage.by_priority.items())},
        "missing_high_priority_types": list(coverage.missing_high_priority_types),
        "total_count": coverage.total_count,
        "primary_count": coverage.primary_count,
        "has_enough_primary_content": coverage.has_enough_primary_content,
    }


def result_to_dict(result: FilteredPaidResources, coverage: CoverageAnalysis) -> Dict[str, Any]:
    stats = result.stats
    return {
        "recommended": [comparison_to_dict(c) for c in result.recommended],
        "filtered": [filtered_to_dict(f) for f in result.filtered],
        "stats": {
            "total_searched": stats.total_searched,
            "duplicate_count": stats.duplicate_count,
            "low_priority_skipped": stats.low_priority_skipped,
            "recommended_count": stats.recommended_count,
        },
        "summary": summarize_recommended(result),
        "report": result.report,
        "coverage": coverage_to_dict(coverage),
        "message": user_message(result, coverage),
    }
