from __future__ import annotations

import asyncio

import httpx
from bs4 import BeautifulSoup
from loguru import logger

from app.config import PipelineConfig
from app.tools import web_utils

NON_CONTENT_TAGS = (
    "script",
    "style",
    "noscript",
    "template",
    "svg",
    "iframe",
    "nav",
    "header",
    "footer",
    "aside",
    "form",
)

TEXT_CONTENT_TYPES = ("text/", "application/xhtml", "application/xml")

USER_AGENT = "Mozilla/5.0 (compatible; studybrief/0.1; +https://localhost)"


def _extract_with_trafilatura(raw_html: str) -> str:
    import trafilatura

    extracted = trafilatura.extract(raw_html, output_format="txt")
    return extracted if isinstance(extracted, str) else ""


def _extract_with_soup(raw_html: str) -> str:
    soup = BeautifulSoup(raw_html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    return soup.get_text(" ")


def extract_text(raw_content: str, *, max_chars: int) -> str:
    """Reduce a fetched page to visible text, whitespace collapsed and capped."""
    if not raw_content.strip():
        return ""
    seems_html = "<" in raw_content and ">" in raw_content
    if not seems_html:
        return web_utils.clean_content(raw_content, max_chars)

    try:
        text = _extract_with_trafilatura(raw_content)
    except Exception as e:
        logger.debug(f"trafilatura failed, falling back to soup: {e}")
        text = ""
    if not text.strip():
        text = _extract_with_soup(raw_content)
    return web_utils.clean_content(text, max_chars)


class PageExtractor:
    """Fetches a URL and returns a bounded plain-text excerpt.

    Never raises: timeouts, network failures, non-success responses and
    non-text bodies all produce an empty string.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.timeout = config.extraction_timeout
        self.max_chars = config.extraction_max_chars
        self._http_client = http_client

    async def _fetch(self, url: str) -> httpx.Response:
        headers = {"User-Agent": USER_AGENT}
        if self._http_client is None:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True
            ) as client:
                return await client.get(url, headers=headers)
        return await self._http_client.get(url, headers=headers)

    async def extract(self, url: str) -> str:
        if not web_utils.is_valid_url(url):
            return ""
        try:
            response = await asyncio.wait_for(self._fetch(url), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.info(f"Fetch timed out after {self.timeout}s: {url}")
            return ""
        except httpx.HTTPError as e:
            logger.info(f"Fetch failed for {url}: {e}")
            return ""

        if response.is_error:
            logger.info(f"Fetch returned {response.status_code}: {url}")
            return ""

        content_type = response.headers.get("content-type", "text/html").lower()
        if not content_type.startswith(TEXT_CONTENT_TYPES):
            logger.debug(f"Skipping non-text content ({content_type}): {url}")
            return ""

        try:
            return await asyncio.to_thread(
                extract_text, response.text, max_chars=self.max_chars
            )
        except Exception as e:
            logger.warning(f"Text extraction failed for {url}: {e}")
            return ""
