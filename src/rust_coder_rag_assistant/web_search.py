"""
Web search and scrape helper.

:meth:`WebSearcher.search_and_scrape` queries DuckDuckGo's HTML endpoint,
then fetches the top results and extracts their visible text (paragraphs,
headings and code blocks).  The combined text is used both as general
context by the retriever and as per-crate research by the dependency
researcher.

A failed search raises :class:`~rust_coder_rag_assistant.errors.WebSearchError`.
A result page that cannot be fetched is skipped; its search snippet is
still included.

``requests`` is synchronous, so the async entry point runs the whole
search on a worker thread.
"""

from __future__ import annotations

import asyncio
import urllib.parse
from dataclasses import dataclass
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from .app_config import Settings
from .errors import WebSearchError


SEARCH_URL = "https://html.duckduckgo.com/html/"
TEXT_SELECTOR = "p, h1, h2, h3, code"
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


@dataclass
class SearchResult:
    """Normalized container for search hits."""

    title: str
    url: str
    snippet: str


def _clean_result_url(href: str) -> str:
    # DuckDuckGo wraps targets in a redirect: //duckduckgo.com/l/?uddg=<target>
    if "duckduckgo.com/l/" in href or href.startswith("/l/"):
        parsed = urllib.parse.urlparse(href)
        target = urllib.parse.parse_qs(parsed.query).get("uddg")
        if target:
            return urllib.parse.unquote(target[0])
    if href.startswith("//"):
        return "https:" + href
    return href


def parse_search_results(html: str, limit: int) -> List[SearchResult]:
    """Parse a DuckDuckGo HTML result page into at most ``limit`` hits."""
    soup = BeautifulSoup(html, "html.parser")
    results: List[SearchResult] = []
    for block in soup.select(".result"):
        link = block.select_one("a.result__a")
        if link is None:
            continue
        url = _clean_result_url(str(link.get("href", "")).strip())
        if not url.startswith("http"):
            continue
        snippet_elem = block.select_one(".result__snippet")
        results.append(
            SearchResult(
                title=link.get_text(" ", strip=True),
                url=url,
                snippet=snippet_elem.get_text(" ", strip=True) if snippet_elem else "",
            )
        )
        if len(results) >= limit:
            break
    return results


def extract_page_text(html: str) -> str:
    """Return the visible text of paragraphs, headings and code blocks."""
    soup = BeautifulSoup(html, "html.parser")
    lines = [element.get_text(" ", strip=True) for element in soup.select(TEXT_SELECTOR)]
    return "\n".join(line for line in lines if line)


class WebSearcher:
    """Search the web and scrape the top results.

    Parameters
    ----------
    settings : Settings
        Provides ``web_results`` (pages scraped per search) and
        ``web_timeout`` (seconds per HTTP request).
    session : requests.Session, optional
        HTTP session to use.  A new one is created when omitted.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)

    def search(self, query: str) -> List[SearchResult]:
        """Run the search request and return the top hits."""
        try:
            response = self.session.post(
                SEARCH_URL,
                data={"q": query},
                timeout=self.settings.web_timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise WebSearchError(f"Web search failed for '{query}': {exc}") from exc
        return parse_search_results(response.text, self.settings.web_results)

    def fetch_page_text(self, url: str) -> Optional[str]:
        """Fetch ``url`` and extract its text, or ``None`` if it is unreachable."""
        try:
            response = self.session.get(url, timeout=self.settings.web_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            if self.settings.debug:
                print(f"[WEB SEARCH] Skipping {url}: {exc}")
            return None
        return extract_page_text(response.text)

    def search_and_scrape_sync(self, query: str) -> str:
        """Search, scrape the top results and join everything into one text."""
        scraped: List[str] = []
        for result in self.search(query):
            if result.snippet:
                scraped.append(result.snippet)
            page_text = self.fetch_page_text(result.url)
            if page_text:
                scraped.append(page_text)
        return "\n---\n".join(scraped)

    async def search_and_scrape(self, query: str) -> str:
        """Async entry point; runs :meth:`search_and_scrape_sync` on a worker thread."""
        return await asyncio.to_thread(self.search_and_scrape_sync, query)
