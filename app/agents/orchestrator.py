from __future__ import annotations

import re
import time
from enum import Enum
from typing import AsyncGenerator
from uuid import uuid4

from loguru import logger

from app.agents.collector import ContentSource, ResearchCollector, SearchGateway
from app.agents.pipeline import TopicPipeline
from app.config import PipelineConfig
from app.llm_client import GenerationClient
from app.models.events import Failure, Progress, Result, StreamEvent
from app.models.schemas import TopicResult, dump_results
from app.services import logger as log_service
from app.services import streaming
from app.tools.content_extractor import PageExtractor
from app.tools.pacing import SearchPacer
from app.tools.serpapi_search import SerpApiSearch

FAILURE_MESSAGE = "Summarization failed unexpectedly."


class SubmissionState(str, Enum):
    SPLITTING = "splitting"
    TRANSLATING = "translating"
    COLLECTING = "collecting"
    SUMMARIZING = "summarizing"
    AGGREGATING = "aggregating"
    DONE = "done"


def split_topics(raw_text: str) -> list[str]:
    """One topic per non-blank line, surrounding whitespace removed."""
    return [line.strip() for line in re.split(r"\r?\n", raw_text) if line.strip()]


def new_submission_id() -> str:
    return f"{int(time.time() * 1000)}-{uuid4().hex[:8]}"


class SubmissionOrchestrator:
    """Runs every topic of one submission through the pipeline, in input order.

    Flow:
      1. Split the input into topics (optionally asking the model to extract them)
      2. Translate every topic to English
      3. For each topic: collect web content, then summarize it
      4. Aggregate the topic records into the final result

    `run` yields progress events as it goes and ends with exactly one
    terminal event: the result, or a failure if orchestration itself broke.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        submission_id: str | None = None,
        generator: GenerationClient | None = None,
        search_gateway: SearchGateway | None = None,
        extractor: ContentSource | None = None,
    ):
        self.config = config or PipelineConfig.from_settings()
        self.submission_id = submission_id or new_submission_id()
        self.generator = generator or GenerationClient(self.config)
        self.search_gateway = search_gateway or SerpApiSearch(self.config)
        self.extractor = extractor or PageExtractor(self.config)
        self.state: SubmissionState | None = None
        self._last_status: str | None = None

    def _build_pipeline(self) -> TopicPipeline:
        collector = ResearchCollector(
            self.search_gateway,
            self.extractor,
            word_target=self.config.word_accumulation_target,
            max_attempts=self.config.max_collection_attempts,
            pacer=SearchPacer(self.config.inter_request_delay),
        )
        return TopicPipeline(self.generator, collector)

    def _status(self, text: str) -> Progress | None:
        # Repeating the same status adds nothing for the consumer.
        if text == self._last_status:
            return None
        self._last_status = text
        logger.info(f"STATUS: {text}")
        return streaming.progress(text)

    def _enter(self, state: SubmissionState, text: str) -> Progress | None:
        if state != self.state:
            logger.debug(f"Submission {self.submission_id}: {self.state} -> {state.value}")
            self.state = state
        return self._status(text)

    async def split(self, raw_text: str) -> list[str]:
        """Topics for this submission. In "llm" mode the model decides the topics, so
        the result count need not match the number of non-blank lines."""
        topics = split_topics(raw_text)
        if topics and self.config.topic_extraction == "llm":
            extracted = await self.generator.extract_topics(raw_text)
            if extracted:
                return extracted
            logger.info("Model topic extraction returned nothing; using line split")
        return topics

    async def _execute(self, raw_text: str) -> AsyncGenerator[StreamEvent, None]:
        if event := self._enter(SubmissionState.SPLITTING, "Splitting syllabus into topics..."):
            yield event
        topics = await self.split(raw_text)
        if not topics:
            self.state = SubmissionState.DONE
            logger.info("No topics found in submission")
            yield streaming.no_topics()
            return

        pipeline = self._build_pipeline()
        total = len(topics)

        if event := self._enter(SubmissionState.TRANSLATING, "Translating topics to English..."):
            yield event
        translations: list[str] = []
        for index, topic in enumerate(topics, 1):
            if event := self._status(f"Translating topic {index} of {total}"):
                yield event
            translations.append(await pipeline.translate(topic))

        if event := self._enter(
            SubmissionState.COLLECTING,
            "Extracted and translated topics. Scraping the web for each topic...",
        ):
            yield event

        results: list[TopicResult] = []
        for index, (topic, translated) in enumerate(zip(topics, translations), 1):
            if event := self._enter(
                SubmissionState.COLLECTING,
                f"Scraping for topic {index} of {total}: {translated}",
            ):
                yield event
            content = await pipeline.collect(translated)

            if event := self._enter(
                SubmissionState.SUMMARIZING,
                f"Summarizing content for topic {index} of {total}",
            ):
                yield event
            summary = await pipeline.summarize(translated, content)
            results.append(pipeline.assemble(topic, translated, summary, content))
            logger.info(f"Links for topic {index}: {list(content.sources)}")

        if event := self._enter(SubmissionState.AGGREGATING, "Aggregating topic summaries..."):
            yield event
        # Serialize up front so an encoding fault surfaces here, not mid-transport.
        payload = dump_results(results)
        logger.info(f"Final summary payload: {log_service.snippet(payload)}")

        if event := self._enter(SubmissionState.DONE, "Done."):
            yield event
        yield streaming.result(results)

    async def run(self, raw_text: str) -> AsyncGenerator[StreamEvent, None]:
        with log_service.submission_log(self.submission_id, self.config.log_dir):
            logger.info(f"Received new request. Syllabus: {log_service.snippet(raw_text)}")
            try:
                async for event in self._execute(raw_text):
                    yield event
            except Exception as e:
                logger.exception(f"Submission {self.submission_id} failed: {e}")
                yield streaming.error(FAILURE_MESSAGE)

    async def run_to_completion(self, raw_text: str) -> tuple[Result | Failure, list[Progress]]:
        """Convenience: run the submission, return (terminal_event, progress_events)."""
        progress: list[Progress] = []
        terminal: Result | Failure = streaming.error(FAILURE_MESSAGE)
        async for event in self.run(raw_text):
            if isinstance(event, Progress):
                progress.append(event)
            else:
                terminal = event
        return terminal, progress
