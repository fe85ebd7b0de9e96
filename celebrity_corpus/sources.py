"""Free-content collectors.

Each adapter is a generator ``(celebrity, max_items, settings) -> Iterator[ContentItem]``
yielding classified items. Adapters are looked up in an explicit table and a
failing adapter never stops the others.
"""

import concurrent.futures
import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional
from urllib.parse import quote, quote_plus

import feedparser
import requests

from .classifier import classify
from .config import Settings, get_settings
from .models import Celebrity, ContentItem

log = logging.getLogger(__name__)

Adapter = Callable[[Celebrity, int, Settings], Iterator[ContentItem]]

GOOGLE_NEWS_RSS = "https://news.google.com/rss/search?q={query}&hl={lang}"
WIKIPEDIA_SUMMARY = "https://{lang}.wikipedia.org/api/rest_v1/page/summary/{title}"


def _make_item(source: str, content_type: str, content: str, **fields) -> ContentItem:
    priority, weight = classify(source, content_type, fields.get("metadata"))
    return ContentItem(
        source=source,
        content_type=content_type,
        priority=priority,
        weight=weight,
        content=content,
        **fields,
    )


def collect_news(celebrity: Celebrity, max_items: int, settings: Settings) -> Iterator[ContentItem]:
    """News coverage from the Google News RSS search feed."""
    url = GOOGLE_NEWS_RSS.format(query=quote_plus(f'"{celebrity.name}"'), lang=settings.news_language)
    feed = feedparser.parse(url)
    if feed.get("bozo") and not feed.entries:
        log.warning("News feed for '%s' could not be parsed: %s", celebrity.name, feed.get("bozo_exception"))
        return

    seen = set()
    count = 0
    for entry in feed.entries:
        link = entry.get("link", "")
        if not link or link in seen:
            continue
        seen.add(link)

        published = entry.get("published_parsed") or entry.get("updated_parsed")
        summary = entry.get("summary", "")
        yield _make_item(
            "news",
            "news",
            summary or entry.get("title", ""),
            title=entry.get("title"),
            source_url=link,
            summary=summary[:500] or None,
            date=datetime(*published[:6]) if published else None,
            language=settings.news_language,
            metadata={"publisher": (entry.get("source") or {}).get("title")},
        )
        count += 1
        if count >= max_items:
            return


def collect_wikipedia(celebrity: Celebrity, max_items: int, settings: Settings) -> Iterator[ContentItem]:
    """Page summary for the subject and each alias, one item per distinct page."""
    seen = set()
    count = 0
    for name in [celebrity.name, *celebrity.aliases]:
        if count >= max_items:
            return
        url = WIKIPEDIA_SUMMARY.format(lang=settings.news_language, title=quote(name.replace(" ", "_")))
        resp = requests.get(url, timeout=settings.request_timeout)
        if resp.status_code != 200:
            log.debug("No Wikipedia page for '%s' (HTTP %s)", name, resp.status_code)
            continue
        data = resp.json()
        if data.get("type") == "disambiguation" or not data.get("extract"):
            continue
        page_url = (data.get("content_urls") or {}).get("desktop", {}).get("page")
        if page_url in seen:
            continue
        seen.add(page_url)

        yield _make_item(
            "wikipedia",
            "wiki",
            data["extract"],
            title=data.get("title", name),
            source_url=page_url,
            summary=data.get("description"),
            language=settings.news_language,
            metadata={"pageid": data.get("pageid")},
        )
        count += 1


ADAPTERS: Dict[str, Adapter] = {
    "news": collect_news,
    "wikipedia": collect_wikipedia,
}


def _run_adapter(name: str, adapter: Adapter, celebrity: Celebrity, max_items: int, settings: Settings) -> List[ContentItem]:
    items = list(adapter(celebrity, max_items, settings))
    log.info("Source '%s': %d items for '%s'", name, len(items), celebrity.name)
    return items


def collect(
    celebrity: Celebrity,
    adapters: Dict[str, Adapter],
    max_items: int = 20,
    settings: Optional[Settings] = None,
    names: Optional[Iterable[str]] = None,
    workers: int = 1,
) -> List[ContentItem]:
    """Run each adapter in *adapters* (or just *names*) and gather their items.

    Results keep the adapter order even when run in parallel.
    """
    settings = settings or get_settings()
    selected = []
    for name in names or adapters:
        if name not in adapters:
            log.warning("Unknown source '%s', skipping", name)
            continue
        selected.append(name)

    results: Dict[str, List[ContentItem]] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        future_to_name = {
            executor.submit(_run_adapter, name, adapters[name], celebrity, max_items, settings): name
            for name in selected
        }
        for future in concurrent.futures.as_completed(future_to_name):
            name = future_to_name[future]
            try:
                results[name] = future.result()
            except Exception as exc:
                log.warning("Source '%s' failed for '%s': %s", name, celebrity.name, exc)
                results[name] = []

    return [item for name in selected for item in results[name]]
