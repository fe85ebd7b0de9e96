from unittest import mock

import requests

from celebrity_corpus.catalog import (
    BookInfo,
    assess_priority,
    assess_quality,
    assess_relevance,
    assess_weight,
    ebook_price,
    google_books_price,
    parse_amazon_price,
    search_ebooks,
)
from celebrity_corpus.config import Settings
from celebrity_corpus.models import Celebrity, PaidResource
from celebrity_corpus.pricing import PLATFORMS

MUSK = Celebrity(name="Elon Musk", aliases=["马斯克", "Musk"])


def _volume(vid, title, authors=None, description="", categories=None, price=None):
    item = {
        "id": vid,
        "volumeInfo": {
            "title": title,
            "authors": authors or [],
            "description": description,
            "publishedDate": "2015-05-19",
            "pageCount": 400,
            "categories": categories or [],
            "industryIdentifiers": [{"type": "ISBN_13", "identifier": "9780062301239"}],
            "previewLink": f"https://books.google.com/books?id={vid}",
        },
    }
    if price is not None:
        item["saleInfo"] = {"retailPrice": {"amount": price, "currencyCode": "USD"}}
    return item


def _response(payload=None, status=200, text=""):
    resp = mock.Mock()
    resp.status_code = status
    resp.json.return_value = payload or {}
    resp.text = text
    resp.raise_for_status.return_value = None
    return resp


def test_assess_relevance():
    book = BookInfo(id="1", title="Elon Musk", author="Ashlee Vance",
                    description="The life of Elon Musk", categories=["Biography & Autobiography"])
    assert abs(assess_relevance(book, MUSK) - 0.7) < 1e-9
    own = BookInfo(id="2", title="Musk on Musk", author="Elon Musk", description="musk")
    assert assess_relevance(own, MUSK) == 1.0
    assert assess_relevance(BookInfo(id="3", title="Rockets"), MUSK) == 0.0


def test_assess_quality():
    assert assess_quality(BookInfo(id="1", title="t")) == 0.5
    rich = BookInfo(id="2", title="t", description="x" * 201, page_count=300, isbn="978")
    assert abs(assess_quality(rich) - 0.9) < 1e-9


def test_assess_priority_and_weight():
    assert assess_priority(BookInfo(id="1", title="Notes", author="Elon Musk"), MUSK) == 2
    assert assess_priority(BookInfo(id="2", title="A Life in Rockets", author="Someone"), MUSK) == 3
    assert assess_priority(BookInfo(id="3", title="Tesla Inc.", author="Someone"), MUSK) == 4
    assert [assess_weight(p) for p in (2, 3, 4, 5)] == [0.8, 0.6, 0.5, 0.5]


@mock.patch("celebrity_corpus.catalog.requests.get")
def test_search_ebooks_dedupes_and_filters(mock_get):
    first = {"items": [
        _volume("a", "Elon Musk", ["Ashlee Vance"], "Elon Musk biography", ["Biography"], price=14.99),
        _volume("b", "Gardening Basics", ["Someone"]),
    ]}
    second = {"items": [_volume("a2", "Elon Musk", ["Ashlee Vance"])]}
    mock_get.side_effect = [_response(first), _response(second), _response({})]

    resources = search_ebooks(MUSK, Settings(google_books_api_key="k"))

    assert [r.title for r in resources] == ["Elon Musk"]
    res = resources[0]
    assert res.id == "ebook-a"
    assert res.priority == 4 and res.weight == 0.5
    assert res.metadata["listPrice"] == 14.99
    assert res.publish_date.year == 2015
    assert mock_get.call_count == 3
    assert mock_get.call_args_list[0].kwargs["params"]["key"] == "k"


@mock.patch("celebrity_corpus.catalog.requests.get")
def test_search_ebooks_survives_network_errors(mock_get):
    mock_get.side_effect = requests.ConnectionError("offline")
    assert search_ebooks(MUSK, Settings()) == []


def test_google_books_price_from_sale_info():
    platform = PLATFORMS["google_play_books"]
    res = PaidResource(title="Elon Musk", resource_type="ebook", preview_url="https://books.google.com/x",
                       metadata={"listPrice": 10.0, "listCurrency": "USD"})
    info = google_books_price(res, platform)
    assert info.url == "https://books.google.com/x"
    assert abs(info.converted_price - 72.0) < 1e-9
    assert info.region_accessible is False

    assert google_books_price(PaidResource(title="x", resource_type="ebook"), platform) is None


def test_parse_amazon_price():
    html = """
    <div class="s-result-item">
      <a class="a-link-normal s-no-outline" href="/dp/B00KVI76ZS">cover</a>
      <span class="a-price"><span class="a-price-whole">1,234.</span></span>
    </div>
    """
    parsed = parse_amazon_price(html, "https://www.amazon.cn")
    assert parsed == {"price": 1234.0, "url": "https://www.amazon.cn/dp/B00KVI76ZS"}
    assert parse_amazon_price("<html></html>", "https://www.amazon.cn") is None


@mock.patch("celebrity_corpus.catalog.requests.get")
def test_ebook_price_dispatches_by_platform(mock_get):
    mock_get.return_value = _response(
        status=200, text='<span class="a-price-whole">59.</span>',
    )
    res = PaidResource(title="Elon Musk", resource_type="ebook")
    info = ebook_price(res, PLATFORMS["amazon_cn"])
    assert info.price == 59.0 and info.currency == "CNY"
    assert info.url.startswith("https://www.amazon.cn/s?k=Elon+Musk")
    assert ebook_price(res, PLATFORMS["audible"]) is None
