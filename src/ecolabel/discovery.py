"""Discover pages of a site to analyze together."""

from urllib.parse import urldefrag, urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; EcoLabel/1.0)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

SKIPPED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".zip", ".xml")


def extract_links(soup: BeautifulSoup, url: str) -> list[str]:
    """Same-host page links in document order, without duplicates."""
    host = urlparse(url).netloc
    links: list[str] = []
    seen = set()

    for a in soup.find_all("a", href=True):
        href = a.get("href", "").strip()
        if not href or href.startswith(("mailto:", "tel:", "javascript:", "#")):
            continue
        absolute, _ = urldefrag(urljoin(url, href))
        parsed = urlparse(absolute)
        if parsed.scheme not in ("http", "https") or parsed.netloc != host:
            continue
        if parsed.path.lower().endswith(SKIPPED_EXTENSIONS):
            continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return links


def discover_pages(url: str, limit: int = 10, client: httpx.Client | None = None) -> list[str]:
    """Find up to ``limit`` pages of a site, starting with ``url`` itself.

    Args:
        url: Start page (scheme required)
        limit: Maximum number of URLs returned
        client: HTTP client to use (a short-lived one is created if None)

    Raises:
        httpx.HTTPError: if the start page cannot be fetched
    """
    if client is None:
        with httpx.Client(headers=DEFAULT_HEADERS, timeout=30.0, follow_redirects=True) as own:
            return discover_pages(url, limit, own)

    response = client.get(url)
    response.raise_for_status()
    final_url = str(response.url)
    soup = BeautifulSoup(response.text, "lxml")

    pages = [final_url]
    for link in extract_links(soup, final_url):
        if len(pages) >= limit:
            break
        if link.rstrip("/") != final_url.rstrip("/"):
            pages.append(link)
    return pages
