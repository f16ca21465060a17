from __future__ import annotations

from typing import AsyncIterator

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import StreamingResponse
from sse_starlette.sse import EventSourceResponse

from app.agents.orchestrator import SubmissionOrchestrator
from app.api.deps import get_generation_client, get_orchestrator
from app.llm_client import GenerationClient
from app.models.events import Failure, to_sse
from app.models.schemas import ContentSummaryResponse, SummaryResponse
from app.services import logger as log_service
from app.services import streaming
from app.services.event_codec import encode_events

router = APIRouter(prefix="/api/summarize", tags=["summarize"])


async def _read_text_field(request: Request, field: str) -> str:
    """Return a text form field, rejecting missing or non-text values."""
    form = await request.form()
    value = form.get(field)
    if not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"Missing {field}")
    return value


def _wants_stream(stream: bool, header_value: str | None) -> bool:
    return stream or (header_value or "").strip().lower() == "true"


@router.post("", response_model=SummaryResponse)
async def summarize(
    request: Request,
    stream: bool = False,
    x_status_stream: str | None = Header(default=None),
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
):
    """Summarize every topic of the `syllabus` form field.

    With `x-status-stream: true` (or `?stream=true`) the response is the
    marker-prefixed progress stream; otherwise a single JSON envelope.
    """
    syllabus = await _read_text_field(request, "syllabus")
    log_service.log_event(
        event_type="submission_received",
        message="Summarization requested",
        submission_id=orchestrator.submission_id,
        streaming=_wants_stream(stream, x_status_stream),
    )

    if _wants_stream(stream, x_status_stream):
        return StreamingResponse(
            encode_events(orchestrator.run(syllabus)),
            media_type="application/octet-stream",
        )

    terminal, _ = await orchestrator.run_to_completion(syllabus)
    if isinstance(terminal, Failure):
        raise HTTPException(status_code=500, detail=terminal.message)
    return SummaryResponse(summary=list(terminal.results), message=terminal.message)


@router.post("/events")
async def summarize_events(
    request: Request,
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
):
    """SSE variant of the summarization stream."""
    syllabus = await _read_text_field(request, "syllabus")

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        failed = False
        async for event in orchestrator.run(syllabus):
            if failed:
                continue
            try:
                payload = to_sse(event)
            except Exception as e:
                log_service.log_event(
                    event_type="stream_error",
                    message="Failed to encode summarization event",
                    error=str(e),
                    submission_id=orchestrator.submission_id,
                )
                failed = True
                payload = to_sse(streaming.error("Summarization stream failed unexpectedly."))
            yield payload

    return EventSourceResponse(event_generator())


@router.post("/content", response_model=ContentSummaryResponse)
async def summarize_content(
    request: Request,
    generator: GenerationClient = Depends(get_generation_client),
):
    """Summarize a pasted block of text or HTML directly."""
    content = await _read_text_field(request, "content")
    if not content.strip():
        raise HTTPException(status_code=400, detail="Missing content")
    summary = await generator.summarize_content(content)
    return ContentSummaryResponse(summary=summary)
