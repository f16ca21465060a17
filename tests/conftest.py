from __future__ import annotations

from dataclasses import replace

import pytest

from app.config import PipelineConfig


class FakeSearch:
    """Returns the same links for a query on every call."""

    def __init__(self, results: dict[str, list[str]] | None = None, default: list[str] | None = None):
        self.results = results or {}
        self.default = default or []
        self.calls: list[str] = []

    async def search(self, query: str) -> list[str]:
        self.calls.append(query)
        return list(self.results.get(query, self.default))


class FakeExtractor:
    def __init__(self, pages: dict[str, str] | None = None, default: str = ""):
        self.pages = pages or {}
        self.default = default
        self.calls: list[str] = []

    async def extract(self, url: str) -> str:
        self.calls.append(url)
        return self.pages.get(url, self.default)


class FakeGenerator:
    def __init__(self, topics: list[str] | None = None):
        self.topics = topics or []
        self.translated: list[str] = []
        self.summarized: list[tuple[str, str]] = []
        self.extract_calls = 0

    async def translate(self, topic: str) -> str:
        self.translated.append(topic)
        return f"{topic} (en)"

    async def summarize_topic(self, topic: str, content: str) -> str:
        self.summarized.append((topic, content))
        return f"Summary of {topic}: {len(content.split())} words"

    async def summarize_content(self, content: str) -> str:
        return f"Digest: {content[:20]}"

    async def extract_topics(self, text: str) -> list[str]:
        self.extract_calls += 1
        return list(self.topics)


@pytest.fixture
def pipeline_config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        search_api_key="test-key",
        model_preference_order=("model-a", "model-b"),
        inter_request_delay=0.0,
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def make_config(pipeline_config):
    def _make(**overrides) -> PipelineConfig:
        return replace(pipeline_config, **overrides)

    return _make


@pytest.fixture
def fake_search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def fake_extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()
