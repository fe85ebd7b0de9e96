"""Ebook catalog search: finds paid books about a subject and prices them per platform."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import quote_plus

import requests
from bs4 import BeautifulSoup

from .config import Settings, get_settings
from .models import Celebrity, PaidResource, Platform, PriceInfo
from .pricing import PLATFORMS, PriceLookupConfig, make_price_info

log = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

MIN_RELEVANCE = 0.3


@dataclass
class BookInfo:
    id: str
    title: str
    author: Optional[str] = None
    description: Optional[str] = None
    publish_date: Optional[datetime] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    categories: List[str] = field(default_factory=list)
    preview_url: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None


def _parse_published(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%Y-%m", "%Y"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _book_from_volume(item: dict) -> BookInfo:
    info = item.get("volumeInfo", {})
    retail = (item.get("saleInfo") or {}).get("retailPrice") or {}
    isbn = next(
        (i.get("identifier") for i in info.get("industryIdentifiers", []) if i.get("type") == "ISBN_13"),
        None,
    )
    authors = info.get("authors")
    return BookInfo(
        id=item.get("id", ""),
        title=info.get("title", "").strip(),
        author=", ".join(authors) if authors else None,
        description=info.get("description"),
        publish_date=_parse_published(info.get("publishedDate")),
        isbn=isbn,
        page_count=info.get("pageCount"),
        categories=info.get("categories") or [],
        preview_url=info.get("previewLink"),
        price=retail.get("amount"),
        currency=retail.get("currencyCode"),
    )


def search_google_books(query: str, settings: Optional[Settings] = None) -> List[BookInfo]:
    settings = settings or get_settings()
    params = {
        "q": query,
        "maxResults": 20,
        "printType": "books",
        "orderBy": "relevance",
    }
    if settings.google_books_api_key:
        params["key"] = settings.google_books_api_key

    try:
        resp = requests.get(GOOGLE_BOOKS_URL, params=params, timeout=settings.request_timeout)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        log.warning("Google Books search failed for '%s': %s", query, e)
        return []

    return [_book_from_volume(item) for item in data.get("items", [])]


# ── Assessment heuristics ──


def _names(celebrity: Celebrity) -> List[str]:
    return [n.lower() for n in [celebrity.name, *celebrity.aliases] if n]


def _mentions(text: Optional[str], names: List[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(n in lowered for n in names)


def assess_relevance(book: BookInfo, celebrity: Celebrity) -> float:
    names = _names(celebrity)
    score = 0.0
    if _mentions(book.title, names):
        score += 0.4
    if _mentions(book.author, names):
        score += 0.4
    if _mentions(book.description, names):
        score += 0.2
    if any("biography" in c.lower() for c in book.categories):
        score += 0.1
    return min(1.0, score)


def assess_quality(book: BookInfo) -> float:
    score = 0.5
    if book.description and len(book.description) > 200:
        score += 0.2
    if book.page_count and book.page_count > 100:
        score += 0.1
    if book.isbn:
        score += 0.1
    return min(1.0, score)


def assess_priority(book: BookInfo, celebrity: Celebrity) -> int:
    if _mentions(book.author, _names(celebrity)):
        return 2  # self-authored
    title = book.title.lower()
    if "biography" in title or "life" in title:
        return 3
    return 4


def assess_weight(priority: int) -> float:
    return {2: 0.8, 3: 0.6}.get(priority, 0.5)


def search_ebooks(celebrity: Celebrity, settings: Optional[Settings] = None) -> List[PaidResource]:
    """Search the catalog under the subject's name and first two aliases."""
    settings = settings or get_settings()
    terms = [celebrity.name, *celebrity.aliases[:2]]
    resources: List[PaidResource] = []
    seen_titles = set()

    for term in terms:
        for book in search_google_books(term, settings):
            if not book.title or book.title in seen_titles:
                continue
            relevance = assess_relevance(book, celebrity)
            if relevance < MIN_RELEVANCE:
                continue
            seen_titles.add(book.title)

            priority = assess_priority(book, celebrity)
            resources.append(PaidResource(
                id=f"ebook-{book.id}",
                title=book.title,
                resource_type="ebook",
                description=book.description,
                author=book.author,
                publish_date=book.publish_date,
                preview=(book.description or "")[:500] or None,
                preview_url=book.preview_url,
                relevance_score=relevance,
                content_quality=assess_quality(book),
                priority=priority,
                weight=assess_weight(priority),
                metadata={
                    "isbn": book.isbn,
                    "pageCount": book.page_count,
                    "categories": book.categories,
                    "listPrice": book.price,
                    "listCurrency": book.currency,
                },
            ))

    log.info("Ebook catalog: %d candidates for '%s'", len(resources), celebrity.name)
    return resources


# ── Platform price lookups ──


def google_books_price(resource: PaidResource, platform: Platform) -> Optional[PriceInfo]:
    """Price from the sale info captured at search time."""
    amount = resource.metadata.get("listPrice")
    if amount is None:
        return None
    url = resource.preview_url or f"{platform.url}?q={quote_plus(resource.title)}"
    return make_price_info(
        platform,
        float(amount),
        url,
        currency=resource.metadata.get("listCurrency") or platform.currency,
        format="Google Play",
    )


_PRICE_RE = re.compile(r"[^\d.]")


def parse_amazon_price(html: str, base_url: str) -> Optional[Dict[str, object]]:
    """First search result's price and link from an Amazon search page."""
    soup = BeautifulSoup(html, "html.parser")
    whole = soup.select_one(".a-price-whole")
    if whole is None:
        return None
    try:
        price = float(_PRICE_RE.sub("", whole.get_text()).rstrip("."))
    except ValueError:
        return None
    if price <= 0:
        return None
    link = soup.select_one("a.a-link-normal.s-no-outline")
    href = link.get("href") if link else None
    return {"price": price, "url": f"{base_url}{href}" if href else None}


def amazon_price(resource: PaidResource, platform: Platform) -> Optional[PriceInfo]:
    settings = get_settings()
    search_url = f"{platform.url}/s?k={quote_plus(resource.title)}&i=digital-text"
    resp = requests.get(search_url, headers=DEFAULT_HEADERS, timeout=settings.request_timeout)
    if resp.status_code != 200:
        return None
    parsed = parse_amazon_price(resp.text, platform.url)
    if not parsed:
        return None
    return make_price_info(platform, parsed["price"], parsed["url"] or search_url, format="Kindle")


_EBOOK_LOOKUPS = {
    "google_play_books": google_books_price,
    "amazon_cn": amazon_price,
    "amazon_com": amazon_price,
}


def ebook_price(resource: PaidResource, platform: Platform) -> Optional[PriceInfo]:
    lookup = _EBOOK_LOOKUPS.get(platform.id)
    return lookup(resource, platform) if lookup else None


LOOKUPS: Dict[str, PriceLookupConfig] = {
    "ebook": PriceLookupConfig(
        platforms=[PLATFORMS[p] for p in _EBOOK_LOOKUPS],
        lookup=ebook_price,
    ),
}
