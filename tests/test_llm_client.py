"""Tests for the generation client and its model fallback chain."""
import json

import httpx
import pytest

from app.llm_client import SUMMARY_FALLBACK, GenerationClient, parse_topic_array


def _client_for(responses: dict[str, httpx.Response | Exception], calls: list[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        calls.append(body)
        outcome = responses[body["model"]]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_first_model_answer_is_used(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.Response(200, json={"response": "  Entropy overview.  "}),
            "model-b": httpx.Response(200, json={"response": "unused"}),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            summary = await client.summarize_topic("Entropy", "text about entropy")

        assert summary == "Entropy overview."
        assert [c["model"] for c in calls] == ["model-a"]
        assert calls[0]["stream"] is False
        assert "Entropy" in calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_transport_error_and_empty_answer_fall_through(self, make_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.ConnectError("connection refused"),
            "model-b": httpx.Response(200, json={"response": "   "}),
            "model-c": httpx.Response(200, json={"response": "Third time lucky."}),
        }
        config = make_config(model_preference_order=("model-a", "model-b", "model-c"))
        async with _client_for(responses, calls) as http:
            client = GenerationClient(config, http_client=http)
            summary = await client.summarize_content("<p>raw</p>")

        assert summary == "Third time lucky."
        assert [c["model"] for c in calls] == ["model-a", "model-b", "model-c"]

    @pytest.mark.asyncio
    async def test_non_success_status_and_bad_body_fall_through(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.Response(503, text="overloaded"),
            "model-b": httpx.Response(200, text="not json"),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            summary = await client.summarize_topic("Entropy", "")

        assert summary == SUMMARY_FALLBACK
        assert len(calls) == 2


class TestFallbackValues:
    @pytest.mark.asyncio
    async def test_translation_falls_back_to_source_text(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.Response(200, json={"response": ""}),
            "model-b": httpx.Response(200, json={}),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            translated = await client.translate("Álgebra Linear")

        assert translated == "Álgebra Linear"

    @pytest.mark.asyncio
    async def test_translation_keeps_first_line_only(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.Response(200, json={"response": '\n"Linear Algebra"\nNote: literal.'}),
            "model-b": httpx.Response(200, json={"response": "unused"}),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            translated = await client.translate("Álgebra Linear")

        assert translated == "Linear Algebra"

    @pytest.mark.asyncio
    async def test_summaries_fall_back_to_sentinel(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.ReadTimeout("timed out"),
            "model-b": httpx.ReadTimeout("timed out"),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            assert await client.summarize_topic("Entropy", "content") == SUMMARY_FALLBACK
            assert await client.summarize_content("content") == SUMMARY_FALLBACK

    @pytest.mark.asyncio
    async def test_empty_content_uses_no_content_note(self, pipeline_config):
        calls: list[dict] = []
        responses = {"model-a": httpx.Response(200, json={"response": "General overview."})}
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            await client.summarize_topic("Entropy", "   ")

        assert "No web content could be retrieved" in calls[0]["prompt"]


class TestTopicExtraction:
    def test_parse_topic_array_reads_first_bracket_span(self):
        text = 'Here you go:\n["Álgebra", " Cálculo ", ""]\nHope it helps.'
        assert parse_topic_array(text) == ["Álgebra", "Cálculo"]

    def test_parse_topic_array_rejects_non_arrays(self):
        assert parse_topic_array("no json here") == []
        assert parse_topic_array("[not valid json]") == []

    @pytest.mark.asyncio
    async def test_extract_topics_skips_unparseable_answers(self, pipeline_config):
        calls: list[dict] = []
        responses = {
            "model-a": httpx.Response(200, json={"response": "Topics: algebra, calculus"}),
            "model-b": httpx.Response(200, json={"response": '["Álgebra", "Cálculo"]'}),
        }
        async with _client_for(responses, calls) as http:
            client = GenerationClient(pipeline_config, http_client=http)
            topics = await client.extract_topics("Álgebra e Cálculo")

        assert topics == ["Álgebra", "Cálculo"]
        assert len(calls) == 2
