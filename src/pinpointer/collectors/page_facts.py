"""HTTP page-fact collector."""
import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx

from ..core.config import settings
from ..core.errors import PageFetchError
from ..core.logging import logger
from ..models.facts import PageFacts
from ..utils.retry import CallOutcome, OutcomeKind, RetryPolicy, exponential_backoff, resilient_call
from ..utils.url_utils import site_root
from .html_extract import extract_page_facts

MAX_ROBOTS_CHARS = 2000


class PageFactCollector:
    """Fetches the target page and extracts its facts."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.transport = transport
        self.policy = policy or RetryPolicy(
            max_attempts=settings.CRAWLER_MAX_ATTEMPTS,
            backoff=exponential_backoff(1.0, 5.0),
            retry_exceptions=(httpx.TransportError,),
            reraise=True,
        )
        self.sleep = sleep

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"User-Agent": settings.CRAWLER_USER_AGENT},
            timeout=settings.CRAWLER_TIMEOUT,
            follow_redirects=True,
            verify=settings.CRAWLER_VERIFY_SSL,
            transport=self.transport,
        )

    async def collect(self, url: str) -> PageFacts:
        """
        Fetch and extract page facts.

        Args:
            url: Page to audit

        Returns:
            PageFacts including robots.txt and sitemap presence

        Raises:
            PageFetchError: If the page cannot be fetched or returns an error status
        """
        logger.info(f"Crawling {url}")
        async with self._client() as client:

            async def fetch() -> CallOutcome:
                response = await client.get(url)
                if response.status_code >= 500:
                    return CallOutcome(OutcomeKind.UNAVAILABLE, value=response, status_code=response.status_code)
                if response.status_code >= 400:
                    return CallOutcome(OutcomeKind.FAILED, value=response, status_code=response.status_code)
                return CallOutcome(OutcomeKind.OK, value=response, status_code=response.status_code)

            try:
                outcome = await resilient_call(fetch, self.policy, label=f"Fetch {url}", sleep=self.sleep)
            except httpx.HTTPError as e:
                raise PageFetchError(url, str(e) or e.__class__.__name__) from e

            if outcome is None:
                raise PageFetchError(url, "no response")
            if not outcome.ok:
                raise PageFetchError(url, f"HTTP {outcome.status_code}")

            response: httpx.Response = outcome.value
            facts = extract_page_facts(
                url,
                response.status_code,
                response.text[:settings.CRAWLER_MAX_BODY_CHARS],
                headers=response.headers,
                set_cookies=response.headers.get_list("set-cookie"),
            )

            root = site_root(url)
            facts.robots_txt = await self._fetch_robots(client, f"{root}/robots.txt")
            facts.sitemap_exists = await self._exists(client, f"{root}/sitemap.xml")

        logger.info(
            f"Crawl done: {facts.word_count} words, {len(facts.images)} imgs, "
            f"{facts.links.internal_count}/{facts.links.external_count} links"
        )
        return facts

    async def _fetch_robots(self, client: httpx.AsyncClient, url: str) -> str:
        try:
            response = await client.get(url, timeout=settings.CRAWLER_AUX_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug(f"robots.txt fetch failed: {e}")
            return ""
        return response.text[:MAX_ROBOTS_CHARS] if response.status_code == 200 else ""

    async def _exists(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await client.get(url, timeout=settings.CRAWLER_AUX_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug(f"sitemap fetch failed: {e}")
            return False
        return response.status_code == 200
