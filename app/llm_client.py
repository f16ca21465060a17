"""Text-generation client for an Ollama-compatible /api/generate endpoint."""
from __future__ import annotations

import json
import time
from typing import Any, Callable

import httpx
from loguru import logger

from app.config import PipelineConfig
from app.services.logger import log_llm_call, snippet
from app.services.prompt_store import PromptTemplate, render_prompt

SUMMARY_FALLBACK = "No summary generated."


def _first_line(text: str) -> str:
    for line in text.splitlines():
        cleaned = line.strip().strip('"').strip()
        if cleaned:
            return cleaned
    return ""


def parse_topic_array(text: str) -> list[str]:
    """Parse the first ``[...]`` span of a model response as a list of topics."""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        return []
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    return [str(item).strip() for item in parsed if str(item).strip()]


class GenerationClient:
    """Tries each configured model in order until one gives a usable answer.

    Transport failures, non-success responses and empty completions are all
    treated the same way: the next model is tried. When every model fails
    the caller-specific fallback is returned, so results are never empty.
    """

    def __init__(
        self,
        config: PipelineConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.endpoint = config.generation_endpoint
        self.models = list(config.model_preference_order)
        self.timeout = config.generation_timeout
        self._http_client = http_client

    async def _complete(self, model: str, prompt: str) -> str:
        body = {"model": model, "prompt": prompt, "stream": False}
        if self._http_client is None:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.endpoint, json=body)
        else:
            response = await self._http_client.post(self.endpoint, json=body)
        response.raise_for_status()
        data: Any = response.json()
        if isinstance(data, dict) and isinstance(data.get("response"), str):
            return data["response"]
        return ""

    async def _run_chain(
        self,
        template: PromptTemplate,
        *,
        caller: str,
        accept: Callable[[str], bool] | None = None,
        **values: Any,
    ) -> str | None:
        prompt = render_prompt(template, **values)
        logger.info(f"Prompt for {caller}: {snippet(prompt)}")

        for model in self.models:
            t0 = time.monotonic()
            try:
                text = await self._complete(model, prompt)
            except (httpx.HTTPError, ValueError) as e:
                log_llm_call(
                    model=model,
                    caller=caller,
                    duration_ms=int((time.monotonic() - t0) * 1000),
                    status="error",
                    error=str(e) or type(e).__name__,
                )
                continue

            elapsed_ms = int((time.monotonic() - t0) * 1000)
            text = text.strip()
            if text and (accept is None or accept(text)):
                log_llm_call(model=model, caller=caller, duration_ms=elapsed_ms)
                return text
            log_llm_call(model=model, caller=caller, duration_ms=elapsed_ms, status="empty")

        logger.warning(f"All models failed for {caller}")
        return None

    async def translate(self, topic: str) -> str:
        """English rendering of a topic, or the topic itself if no model answers."""
        text = await self._run_chain(
            PromptTemplate.TRANSLATE,
            caller="translate",
            accept=lambda t: bool(_first_line(t)),
            topic=topic,
        )
        if text is None:
            return topic
        return _first_line(text)

    async def summarize_content(self, content: str) -> str:
        text = await self._run_chain(
            PromptTemplate.SUMMARIZE_CONTENT,
            caller="summarize_content",
            content=content,
        )
        return text or SUMMARY_FALLBACK

    async def summarize_topic(self, topic: str, content: str) -> str:
        material = content.strip() or render_prompt("summarize_topic.no_content_note")
        text = await self._run_chain(
            PromptTemplate.SUMMARIZE_TOPIC,
            caller="summarize_topic",
            topic=topic,
            content=material,
        )
        return text or SUMMARY_FALLBACK

    async def extract_topics(self, text: str) -> list[str]:
        answer = await self._run_chain(
            PromptTemplate.EXTRACT_TOPICS,
            caller="extract_topics",
            accept=lambda t: bool(parse_topic_array(t)),
            text=text,
        )
        if answer is None:
            return []
        return parse_topic_array(answer)
