from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from app.config import PipelineConfig
from app.tools import web_utils


def _parse_links(payload: Any) -> list[str]:
    if not isinstance(payload, dict):
        return []
    organic = payload.get("organic_results")
    if not isinstance(organic, list):
        return []
    links: list[str] = []
    for item in organic:
        if not isinstance(item, dict):
            continue
        link = item.get("link")
        if isinstance(link, str) and web_utils.is_valid_url(link):
            links.append(link)
    return links


class SerpApiSearch:
    """Search gateway over SerpAPI's JSON endpoint.

    Any provider problem (missing key, non-success status, network error,
    unexpected body) yields an empty list; callers treat that as "no results".
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = config.search_endpoint
        self.api_key = config.search_api_key
        self.engine = config.search_engine
        self.num_results = config.search_results_per_query
        self._http_client = http_client

    async def search(self, query: str) -> list[str]:
        if not self.api_key:
            logger.warning("SerpAPI key is not configured; search skipped")
            return []

        params: dict[str, Any] = {
            "q": query,
            "engine": self.engine,
            "num": self.num_results,
            "api_key": self.api_key,
        }

        try:
            if self._http_client is None:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.get(self.endpoint, params=params)
            else:
                response = await self._http_client.get(self.endpoint, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"SerpAPI request failed for '{query}': {e}")
            return []

        if response.is_error:
            logger.warning(
                f"SerpAPI error {response.status_code} for '{query}': {response.text[:200]}"
            )
            return []

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"SerpAPI returned a non-JSON body for '{query}'")
            return []

        links = _parse_links(payload)
        logger.debug(f"SerpAPI returned {len(links)} links for '{query}'")
        return links
