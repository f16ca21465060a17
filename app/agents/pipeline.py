from __future__ import annotations

from typing import Protocol

from loguru import logger

from app.agents.collector import ResearchCollector
from app.llm_client import SUMMARY_FALLBACK
from app.models.research import AccumulatedContent
from app.models.schemas import TopicResult


class TopicGenerator(Protocol):
    async def translate(self, topic: str) -> str: ...

    async def summarize_topic(self, topic: str, content: str) -> str: ...


class TopicPipeline:
    """Per-topic stages: translate, collect, summarize, assemble.

    Every stage takes plain values and returns a new one, and a failure in a
    stage degrades only this topic's record.
    """

    def __init__(self, generator: TopicGenerator, collector: ResearchCollector):
        self.generator = generator
        self.collector = collector

    async def translate(self, topic: str) -> str:
        try:
            translated = await self.generator.translate(topic)
        except Exception as e:
            logger.exception(f"Translation failed for '{topic}': {e}")
            return topic
        return translated.strip() or topic

    async def collect(self, translated: str) -> AccumulatedContent:
        try:
            content = await self.collector.collect(translated)
        except Exception as e:
            logger.exception(f"Collection failed for '{translated}': {e}")
            return AccumulatedContent()
        logger.info(
            f"Collected {content.word_count} words from {len(content.sources)} sources "
            f"in {content.attempts} attempts for '{translated}'"
        )
        return content

    async def summarize(self, translated: str, content: AccumulatedContent) -> str:
        try:
            summary = await self.generator.summarize_topic(translated, content.text)
        except Exception as e:
            logger.exception(f"Summarization failed for '{translated}': {e}")
            return SUMMARY_FALLBACK
        return summary.strip() or SUMMARY_FALLBACK

    @staticmethod
    def assemble(
        topic: str,
        translated: str,
        summary: str,
        content: AccumulatedContent,
    ) -> TopicResult:
        return TopicResult(
            topic=topic,
            translated=translated,
            summary=summary,
            sources=tuple(dict.fromkeys(content.sources)),
        )

    async def run(self, topic: str) -> TopicResult:
        translated = await self.translate(topic)
        content = await self.collect(translated)
        summary = await self.summarize(translated, content)
        return self.assemble(topic, translated, summary, content)
