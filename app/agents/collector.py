from __future__ import annotations

from typing import Protocol

from loguru import logger

from app.models.research import AccumulatedContent
from app.tools import web_utils
from app.tools.pacing import SearchPacer


class SearchGateway(Protocol):
    async def search(self, query: str) -> list[str]: ...


class ContentSource(Protocol):
    async def extract(self, url: str) -> str: ...


class ResearchCollector:
    """Gathers web text for one topic until a word target or attempt bound is hit.

    Each attempt runs one search and extracts every result URL not already
    among this topic's sources, so a page that failed once is retried on a
    later pass. A pass that adds nothing ends collection early,
    since repeating the same query will not produce anything new.
    """

    def __init__(
        self,
        search_gateway: SearchGateway,
        extractor: ContentSource,
        *,
        word_target: int = 10000,
        max_attempts: int = 10,
        pacer: SearchPacer | None = None,
    ):
        self.search_gateway = search_gateway
        self.extractor = extractor
        self.word_target = max(int(word_target), 1)
        self.max_attempts = max(int(max_attempts), 0)
        self.pacer = pacer

    async def collect(self, translated_topic: str) -> AccumulatedContent:
        fragments: list[str] = []
        sources: list[str] = []
        seen: set[str] = set()
        words = 0
        attempts = 0

        while words < self.word_target and attempts < self.max_attempts:
            if self.pacer is not None:
                await self.pacer.wait()
            urls = await self.search_gateway.search(translated_topic)
            attempts += 1

            added = 0
            for url in urls:
                if url in seen:
                    continue
                text = await self.extractor.extract(url)
                if not text.strip():
                    continue
                fragments.append(text)
                sources.append(url)
                seen.add(url)
                words += web_utils.word_count(text)
                added += 1
                if words >= self.word_target:
                    break

            logger.debug(
                f"Collection attempt {attempts} for '{translated_topic}': "
                f"{len(urls)} results, {added} new sources, {words} words"
            )
            if added == 0:
                logger.info(
                    f"No new content for '{translated_topic}' after attempt {attempts}; stopping"
                )
                break

        text = " ".join(fragments)
        if words > self.word_target:
            text = web_utils.truncate_words(text, self.word_target)

        return AccumulatedContent(
            text=text,
            sources=tuple(sources),
            word_count=web_utils.word_count(text),
            attempts=attempts,
        )
