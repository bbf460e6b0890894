from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from pagechat.errors import ExtractionError
from pagechat.models import MAX_CONTENT_CHARS, WebpageDocument, utcnow

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10
MAX_REDIRECTS = 5

# Always dropped before text extraction.
_STRIPPED_TAGS = ["script", "style", "nav", "header", "footer"]

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

_WS_RE = re.compile(r"\s+")


def _clean_text(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def html_to_text(html: str) -> tuple[str, str]:
    """
    Returns (title, cleaned_text) for an HTML document.
    The <main> element wins when it carries text; otherwise the body (or whole document) is used.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    if soup.title is not None:
        title = _clean_text(soup.title.get_text())
        soup.title.decompose()

    for tag in soup(_STRIPPED_TAGS):
        tag.decompose()

    text = ""
    main = soup.find("main")
    if main is not None:
        text = _clean_text(main.get_text(" "))
    if not text:
        root = soup.body or soup
        text = _clean_text(root.get_text(" "))

    return title, text[:MAX_CONTENT_CHARS]


async def fetch_html(url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> str:
    try:
        async with httpx.AsyncClient(
            timeout=FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            headers=_BROWSER_HEADERS,
            transport=transport,
        ) as client:
            r = await client.get(url)
            r.raise_for_status()
            return r.text
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Fetching %s failed: %s", url, e)
        raise ExtractionError("fetch failed", cause=e) from e


async def extract(url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> WebpageDocument:
    """
    Fetches a page and reduces it to whitespace-normalized text capped at MAX_CONTENT_CHARS.
    Nothing is cached: every call re-fetches the URL.
    """
    html = await fetch_html(url, transport=transport)
    title, text = html_to_text(html)
    if not text:
        raise ExtractionError("empty content")

    logger.info("Extracted %d chars from %s", len(text), url)
    return WebpageDocument(url=url, title=title, cleaned_text=text, extracted_at=utcnow())
