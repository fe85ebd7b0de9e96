from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set


DATA_SOURCES = ("twitter", "youtube", "wikipedia", "news", "book", "podcast", "blog")

CONTENT_TYPES = (
    "tweet",
    "retweet",
    "reply",
    "interview",
    "speech",
    "podcast_episode",
    "biography",
    "autobiography",
    "article",
    "news",
    "wiki",
    "blog_post",
    "quote",
    "other",
)

PAID_SOURCE_TYPES = (
    "ebook",
    "audiobook",
    "paper",
    "interview",
    "course",
    "database",
    "news_archive",
    "biography_full",
)

PAYMENT_METHODS = ("alipay", "wechat", "unionpay", "visa", "mastercard", "paypal", "crypto")

PURCHASE_TYPES = ("buy", "rent", "subscribe")

# Ordered strongest first; the index doubles as the sort key.
RECOMMENDATION_LEVELS = ("highly_recommend", "recommend", "optional", "skip")


@dataclass
class Celebrity:
    name: str
    aliases: List[str] = field(default_factory=list)
    description: Optional[str] = None
    id: Optional[str] = None


@dataclass
class ContentItem:
    source: str
    content_type: str
    priority: int
    weight: float
    content: str
    title: Optional[str] = None
    source_url: Optional[str] = None
    summary: Optional[str] = None
    date: Optional[datetime] = None
    author: Optional[str] = None
    language: str = "en"
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class Platform:
    id: str
    name: str
    url: str
    region: str  # "cn", "global", "us" or "eu"
    supported_payments: List[str]
    region_accessible: bool
    needs_vpn: bool
    currency: str
    description: Optional[str] = None


@dataclass
class PriceInfo:
    platform: Platform
    url: str
    price: float
    currency: str
    converted_price: float  # price in the reference currency
    purchase_type: str = "buy"
    original_price: Optional[float] = None
    rent_duration: Optional[int] = None  # days
    subscription_period: Optional[str] = None  # "monthly" or "yearly"
    format: Optional[str] = None  # PDF, EPUB, MP3 ...
    quality: Optional[str] = None
    available: bool = True
    region_accessible: bool = True
    supported_payments: List[str] = field(default_factory=list)
    last_checked: Optional[datetime] = None


@dataclass
class PaidResource:
    title: str
    resource_type: str
    title_localized: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    publish_date: Optional[datetime] = None
    preview: Optional[str] = None
    preview_url: Optional[str] = None
    relevance_score: float = 0.5  # 0-1, how related to the subject
    content_quality: float = 0.5  # 0-1
    priority: int = 3
    weight: float = 0.6
    prices: List[PriceInfo] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None


@dataclass
class FreeAlternative:
    source: str
    description: str
    url: str


@dataclass
class PriceComparison:
    resource: PaidResource
    best_price: Optional[PriceInfo]
    best_region_price: Optional[PriceInfo]
    all_prices: List[PriceInfo]
    recommendation: str
    recommendation_reason: str
    free_alternatives: List[FreeAlternative] = field(default_factory=list)


@dataclass
class CoverageAnalysis:
    covered_types: Set[str]
    by_priority: Dict[int, int]
    missing_high_priority_types: List[str]
    total_count: int
    has_enough_primary_content: bool

    @property
    def primary_count(self) -> int:
        return self.by_priority.get(1, 0) + self.by_priority.get(2, 0)


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    matched_content: Optional[ContentItem]
    similarity_score: float
    match_reason: str


@dataclass
class FilteredResource:
    resource: PaidResource
    reason: str
    matched_free_content: Optional[ContentItem] = None


@dataclass
class FilterStats:
    total_searched: int = 0
    duplicate_count: int = 0
    low_priority_skipped: int = 0
    recommended_count: int = 0


@dataclass
class FilteredPaidResources:
    recommended: List[PriceComparison]
    filtered: List[FilteredResource]
    stats: FilterStats
    report: str = ""


@dataclass
class ExportResult:
    celebrity: Celebrity
    export_date: str
    total_items: int
    sources: List[str]
    priority_distribution: Dict[int, int]
    contents: List[ContentItem]
