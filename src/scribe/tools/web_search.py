"""
Web search support: a keyword heuristic that decides when a message needs
live data, and a Tavily client whose failures are reported in-band.
"""

import json
from typing import Optional

import httpx

from scribe.config import TAVILY_SEARCH_URL
from scribe.logger import get_logger

logger = get_logger(__name__)

SEARCH_KEYWORDS = (
    "search",
    "find",
    "lookup",
    "current",
    "recent",
    "news",
    "latest",
    "today",
    "yesterday",
    "this week",
    "what's new",
    "trending",
    "happening",
    "update",
    "information about",
)


def should_search(message: str) -> bool:
    """
    Decide whether a message benefits from a web search.

    Case-insensitive substring match against SEARCH_KEYWORDS, so "searching"
    matches "search". Any question mark also triggers a search.
    """
    lowered = message.lower()
    return "?" in lowered or any(keyword in lowered for keyword in SEARCH_KEYWORDS)


class WebSearchClient:
    """
    Tavily search client.

    ``search`` never raises: missing credentials, HTTP errors and transport
    failures are all returned as serialized ``{"error": ...}`` payloads so the
    caller can feed them to the model as-is.
    """

    def __init__(
        self,
        api_key: Optional[str],
        url: str = TAVILY_SEARCH_URL,
        search_depth: str = "advanced",
        max_results: int = 5,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.search_depth = search_depth
        self.max_results = max_results
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config) -> "WebSearchClient":
        return cls(
            api_key=config.search_api_key,
            url=config.search_url,
            search_depth=config.search_depth,
            max_results=config.search_max_results,
            timeout=config.search_timeout,
        )

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def _build_payload(self, query: str) -> dict:
        return {
            "query": query,
            "search_depth": self.search_depth,
            "max_results": self.max_results,
            "include_answer": True,
            "include_raw_content": False,
        }

    async def search(self, query: str) -> str:
        """Run a search and return the serialized result or error payload."""
        if not self.available:
            return json.dumps(
                {"error": "Web search is not available. API key not configured."}
            )

        logger.info(f'Performing web search for: "{query}"')
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.url, json=self._build_payload(query), headers=headers
                )

                if not response.is_success:
                    logger.error(
                        f'Tavily search failed for query "{query}": {response.text}'
                    )
                    return json.dumps(
                        {
                            "error": f"Search failed with status: {response.status_code}",
                            "details": response.text,
                        }
                    )

                data = response.json()
        except Exception as e:
            logger.error(f'An exception occurred during web search for "{query}": {e}')
            return json.dumps(
                {
                    "error": "An exception occurred during the search.",
                    "message": str(e) or type(e).__name__,
                }
            )

        logger.info(f'Tavily search successful for query "{query}"')
        return json.dumps(data)
