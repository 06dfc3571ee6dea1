"""
City Guide - Web Context Fallback
==================================
Fetches context from the open web when the PDF index has nothing to
offer:

``web_search``
    Scrapes a search-results page and returns ``title\\nsnippet``
    blocks separated by blank lines, sliced to
    ``WEB_RESULTS_MAX_CHARS`` characters.

``wikipedia_summary``
    Reads the ``extract`` field of the Wikipedia REST summary for a
    page title.

Both calls degrade to ``""`` on any network, status, or payload
error; the failure is logged, never raised.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx
from bs4 import BeautifulSoup

from cityguide.config.settings import settings
from cityguide.src.utils.logger import get_logger
from cityguide.src.utils.text_utils import collapse_whitespace, truncate

logger = get_logger(__name__)

# Result containers and their title / snippet elements.  Search pages
# change markup often; the first matching selector wins.
_RESULT_SELECTOR = "div.g"
_TITLE_SELECTORS = ("h3", ".r")
_SNIPPET_SELECTORS = (".VwiC3b", "[data-sncf]", ".s")


def parse_search_results(html: str) -> list[str]:
    """Extract ``"title\\nsnippet"`` strings from a search-results page."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[str] = []
    for block in soup.select(_RESULT_SELECTOR):
        title = _first_text(block, _TITLE_SELECTORS)
        snippet = _first_text(block, _SNIPPET_SELECTORS)
        if title or snippet:
            results.append(f"{title}\n{snippet}")
    return results


def _first_text(block: object, selectors: tuple[str, ...]) -> str:
    for selector in selectors:
        element = block.select_one(selector)  # type: ignore[attr-defined]
        if element is not None:
            return collapse_whitespace(element.get_text(" "))
    return ""


class WebContextFetcher:
    """
    Async web search + encyclopedia lookups over ``httpx``.

    Parameters
    ----------
    client
        Optional pre-built ``httpx.AsyncClient`` (tests pass one with a
        ``MockTransport``).  A client created here is owned and closed
        by ``aclose()``.
    """

    __slots__ = ("_client", "_owns_client")

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT, follow_redirects=True)


    async def web_search(self, query: str) -> str:
        """Return scraped search results for *query*, or ``""`` on failure."""
        try:
            response = await self._client.get(settings.WEB_SEARCH_URL, params={"q": query}, headers={"User-Agent": settings.USER_AGENT})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Error performing web search: %s", exc)
            return ""

        results = "\n\n".join(parse_search_results(response.text))
        logger.info("[WEB] Search for '%s' → %d chars.", query[:60], len(results))
        return truncate(results, settings.WEB_RESULTS_MAX_CHARS)


    async def wikipedia_summary(self, topic: str) -> str:
        """Return the Wikipedia summary extract for *topic*, or ``""``."""
        url = settings.WIKIPEDIA_SUMMARY_URL.format(title=quote(topic, safe=""))
        try:
            response = await self._client.get(url, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            logger.error("Error fetching Wikipedia summary: %s", exc)
            return ""
        except ValueError as exc:
            logger.error("Wikipedia returned invalid JSON: %s", exc)
            return ""

        extract = payload.get("extract") if isinstance(payload, dict) else None
        return extract if isinstance(extract, str) else ""


    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
