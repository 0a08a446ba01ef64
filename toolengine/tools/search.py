"""DuckDuckGo web search with a proxy-first fallback chain."""

import asyncio
import logging
from typing import Dict, List, Optional
from urllib.parse import parse_qs, quote_plus, urlparse

import aiohttp
from bs4 import BeautifulSoup

from ..config import (
    SEARCH_ACCEPT_LANGUAGE,
    SEARCH_PROXY_URL,
    SEARCH_TIMEOUT,
    SEARCH_USER_AGENT,
)

logger = logging.getLogger(__name__)

DDG_HTML_URL = "https://html.duckduckgo.com/html/?q={query}"
DDG_LITE_URL = "https://lite.duckduckgo.com/lite/?q={query}"

# Generic link fallback ignores short anchors like "Next" or "More"
MIN_GENERIC_TITLE_LENGTH = 6

SearchResult = Dict[str, str]


class SearchError(Exception):
    """Raised when no search endpoint could be reached at all."""


def clean_url(url: str) -> str:
    """Unwrap DuckDuckGo redirect links and fix protocol-relative URLs."""
    if "uddg=" in url:
        target = parse_qs(urlparse(url).query).get("uddg")
        if target:
            return target[0]
    if url.startswith("//"):
        return "https:" + url
    return url


def _text(tag) -> str:
    return " ".join(tag.get_text(" ", strip=True).split())


def parse_results(html: str, limit: int) -> List[SearchResult]:
    """
    Extract up to `limit` results from a DuckDuckGo results page.

    Tries the HTML layout (result__a / result__snippet), then the Lite
    layout (result-link), then any external link as a last resort.
    """
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []

    for link in soup.select("a.result__a"):
        if len(results) >= limit:
            break
        url = clean_url(link.get("href", ""))
        title = _text(link)
        snippet_tag = link.find_next(class_="result__snippet")
        snippet = _text(snippet_tag) if snippet_tag else ""
        if title and url:
            results.append({"title": title, "url": url, "snippet": snippet})

    if not results:
        for link in soup.select("a.result-link"):
            if len(results) >= limit:
                break
            url = clean_url(link.get("href", ""))
            title = _text(link)
            if title and url:
                results.append({"title": title, "url": url, "snippet": ""})

    if not results:
        seen = set()
        for link in soup.find_all("a", href=True):
            if len(results) >= limit:
                break
            url = clean_url(link["href"])
            if not url.startswith(("http://", "https://")) or "duckduckgo" in urlparse(url).netloc:
                continue
            title = _text(link)
            if len(title) >= MIN_GENERIC_TITLE_LENGTH and url not in seen:
                seen.add(url)
                results.append({"title": title, "url": url, "snippet": ""})

    return results


async def _search_proxy(session: aiohttp.ClientSession, query: str, limit: int) -> Optional[List[SearchResult]]:
    async with session.post(SEARCH_PROXY_URL, json={"query": query, "limit": limit}) as resp:
        if resp.status != 200:
            logger.info("Search proxy returned status %s", resp.status)
            return None
        data = await resp.json()
        if not isinstance(data, dict):
            return None
        return list(data.get("results") or [])[:limit]


async def _search_page(session: aiohttp.ClientSession, url: str, limit: int) -> Optional[List[SearchResult]]:
    async with session.get(url) as resp:
        if resp.status != 200:
            logger.info("DuckDuckGo returned status %s for %s", resp.status, url)
            return None
        return parse_results(await resp.text(), limit)


async def search_web(query: str, limit: int = 5) -> List[SearchResult]:
    """
    Search the web and return up to `limit` {title, url, snippet} records.

    Endpoints are tried in order (proxy if configured, DuckDuckGo HTML,
    DuckDuckGo Lite) until one yields results. An empty list means the
    endpoints answered but found nothing; SearchError means none answered.
    """
    encoded = quote_plus(query)
    headers = {
        "User-Agent": SEARCH_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml",
        "Accept-Language": SEARCH_ACCEPT_LANGUAGE,
    }
    answered = False
    errors = []

    async with aiohttp.ClientSession(headers=headers, timeout=aiohttp.ClientTimeout(total=SEARCH_TIMEOUT)) as session:
        attempts = []
        if SEARCH_PROXY_URL:
            attempts.append(("proxy", lambda: _search_proxy(session, query, limit)))
        for page_url in (DDG_HTML_URL, DDG_LITE_URL):
            url = page_url.format(query=encoded)
            attempts.append((url, lambda url=url: _search_page(session, url, limit)))

        for label, attempt in attempts:
            try:
                results = await attempt()
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                logger.info("Search via %s failed: %s", label, e)
                errors.append(f"{label}: {e}")
                continue
            if results is None:
                continue
            answered = True
            if results:
                logger.info("Search for %r returned %d results via %s", query, len(results), label)
                return results

    if not answered:
        raise SearchError("all search endpoints failed" + (f" ({'; '.join(errors)})" if errors else ""))
    return []
