"""
Market research client backed by an external neural search API
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.errors import UpstreamUnavailable
from app.logging_config import logger


@dataclass(frozen=True)
class ResearchSnippet:
    title: str
    summary: str


FALLBACK_SNIPPETS: List[ResearchSnippet] = [
    ResearchSnippet(
        title="Startup market trends",
        summary=(
            "Small businesses keep adopting AI-assisted workflows, vertical SaaS, "
            "automation of back-office tasks and subscription services aimed at niche audiences."
        ),
    )
]


class MarketResearchClient:
    """Fetches market research snippets, degrading to static content on any failure"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        deadline: Optional[float] = None,
        max_attempts: int = 2,
        backoff_min: float = 0.5,
        backoff_max: float = 2.0,
        backoff_factor: float = 2.0,
        num_results: int = 3,
    ):
        """
        Initialize market research client

        Args:
            api_key: Search API key; None means fallback-only mode
            api_url: Search endpoint
            timeout: Hard timeout for one HTTP call in seconds
            deadline: Caller-side bound for the whole lookup in seconds
            max_attempts: Total attempts including the first call
            backoff_min: First retry delay in seconds
            backoff_max: Upper bound for a retry delay in seconds
            backoff_factor: Multiplier applied per retry
            num_results: Results requested from the API
        """
        self.api_key = api_key if api_key is not None else settings.search_api_key
        self.api_url = api_url or settings.search_api_url
        self.timeout = timeout or settings.search_timeout
        self.deadline = deadline or settings.search_deadline
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.backoff_factor = backoff_factor
        self.num_results = num_results

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def fallback(self) -> List[ResearchSnippet]:
        return list(FALLBACK_SNIPPETS)

    def _backoff_delay(self, retry_number: int) -> float:
        delay = self.backoff_min * (self.backoff_factor ** (retry_number - 1))
        return min(delay, self.backoff_max)

    async def search(self, query: str) -> List[ResearchSnippet]:
        """
        Look up market research for a query

        Args:
            query: Free-text search query

        Returns:
            Result snippets, or the static fallback if the API is
            unconfigured, failing or slower than the deadline
        """
        if not self.is_configured:
            logger.info("Search API key not configured, using fallback market research")
            return self.fallback()

        try:
            return await asyncio.wait_for(self._search_with_retry(query), timeout=self.deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Market research exceeded {self.deadline}s deadline, using fallback")
        except UpstreamUnavailable as e:
            logger.warning(f"Market research unavailable, using fallback: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected market research error, using fallback: {str(e)}")
        return self.fallback()

    async def _search_with_retry(self, query: str) -> List[ResearchSnippet]:
        """
        Call the search API with exponential backoff between attempts

        Raises:
            UpstreamUnavailable: If every attempt fails
        """
        last_error = "no attempt made"

        for attempt in range(1, self.max_attempts + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        self.api_url,
                        headers={
                            "Content-Type": "application/json",
                            "x-api-key": self.api_key,
                        },
                        json={
                            "query": query,
                            "type": "neural",
                            "numResults": self.num_results,
                            "contents": {"summary": True},
                        },
                    )
                    response.raise_for_status()
                    snippets = self._parse_response(response.json())
                    logger.debug(f"Market research returned {len(snippets)} results on attempt {attempt}")
                    return snippets

            except httpx.HTTPStatusError as e:
                last_error = f"status {e.response.status_code}"
                logger.warning(f"Search API returned {e.response.status_code} on attempt {attempt}")
            except httpx.TimeoutException:
                last_error = "timeout"
                logger.warning(f"Search API timed out on attempt {attempt}")
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                logger.warning(f"Search API call failed on attempt {attempt}: {str(e)}")

            if attempt < self.max_attempts:
                wait_time = self._backoff_delay(attempt)
                logger.debug(f"Waiting {wait_time:.2f} seconds before search retry")
                await asyncio.sleep(wait_time)

        raise UpstreamUnavailable(f"Search API failed after {self.max_attempts} attempts ({last_error})")

    def _parse_response(self, data: Dict[str, Any]) -> List[ResearchSnippet]:
        """
        Extract title/summary pairs from a search API response

        Raises:
            ValueError: If the payload has no results list
        """
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise ValueError("Search API response has no results list")

        snippets = []
        for result in results:
            if not isinstance(result, dict):
                continue
            title = result.get("title") or ""
            summary = result.get("summary") or ""
            if title or summary:
                snippets.append(ResearchSnippet(title=str(title), summary=str(summary)))

        return snippets or self.fallback()


_market_research_client: Optional[MarketResearchClient] = None


def get_market_research_client() -> MarketResearchClient:
    """Dependency returning the shared market research client"""
    global _market_research_client
    if _market_research_client is None:
        _market_research_client = MarketResearchClient()
    return _market_research_client
