from __future__ import annotations

import asyncio

import httpx
import pytest

from app.tools import content_extractor
from app.tools.content_extractor import PageExtractor

PAGE = """
<html>
  <head><title>Entropy</title><style>body { color: red; }</style></head>
  <body>
    <nav>Main menu Home About</nav>
    <script>var tracking = true;</script>
    <article>
      <h1>Entropy</h1>
      <p>Entropy   measures
         the number of microscopic configurations.</p>
    </article>
    <footer>Copyright</footer>
  </body>
</html>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_extract_text_strips_markup_when_trafilatura_finds_nothing(monkeypatch):
    monkeypatch.setattr(content_extractor, "_extract_with_trafilatura", lambda _html: "")

    text = content_extractor.extract_text(PAGE, max_chars=2000)

    assert "Entropy measures the number of microscopic configurations." in text
    assert "tracking" not in text
    assert "color: red" not in text
    assert "Main menu" not in text
    assert "Copyright" not in text
    assert "  " not in text


def test_extract_text_prefers_trafilatura_output(monkeypatch):
    monkeypatch.setattr(
        content_extractor,
        "_extract_with_trafilatura",
        lambda _html: "Main article body\n\nwith   paragraphs",
    )

    assert content_extractor.extract_text(PAGE, max_chars=2000) == "Main article body with paragraphs"


def test_extract_text_caps_length(monkeypatch):
    monkeypatch.setattr(content_extractor, "_extract_with_trafilatura", lambda _html: "word " * 1000)

    text = content_extractor.extract_text("<p>x</p>", max_chars=2000)

    assert len(text) <= 2000


def test_extract_text_handles_plain_text_and_empty_input():
    assert content_extractor.extract_text("  plain\n text  ", max_chars=100) == "plain text"
    assert content_extractor.extract_text("   ", max_chars=100) == ""


@pytest.mark.asyncio
async def test_extract_returns_page_text(monkeypatch, pipeline_config):
    monkeypatch.setattr(content_extractor, "_extract_with_trafilatura", lambda _html: "")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"})

    async with _client(handler) as client:
        extractor = PageExtractor(pipeline_config, http_client=client)
        text = await extractor.extract("https://example.com/entropy")

    assert "microscopic configurations" in text


@pytest.mark.asyncio
async def test_extract_returns_empty_on_non_success(pipeline_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text=PAGE)

    async with _client(handler) as client:
        extractor = PageExtractor(pipeline_config, http_client=client)
        assert await extractor.extract("https://example.com/missing") == ""


@pytest.mark.asyncio
async def test_extract_returns_empty_on_network_failure(pipeline_config):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        extractor = PageExtractor(pipeline_config, http_client=client)
        assert await extractor.extract("https://example.com/down") == ""


@pytest.mark.asyncio
async def test_extract_cancels_slow_fetch_after_timeout(make_config):
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text=PAGE)

    async with _client(handler) as client:
        extractor = PageExtractor(make_config(extraction_timeout=0.05), http_client=client)
        assert await extractor.extract("https://example.com/slow") == ""


@pytest.mark.asyncio
async def test_extract_skips_non_text_content(pipeline_config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"%PDF-1.7", headers={"content-type": "application/pdf"})

    async with _client(handler) as client:
        extractor = PageExtractor(pipeline_config, http_client=client)
        assert await extractor.extract("https://example.com/paper.pdf") == ""


@pytest.mark.asyncio
async def test_extract_rejects_invalid_url(pipeline_config):
    extractor = PageExtractor(pipeline_config)
    assert await extractor.extract("not a url") == ""
