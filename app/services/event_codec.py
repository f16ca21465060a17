"""Marker-prefixed wire encoding for submission events.

A stream carries zero or more ``STATUS:`` lines followed by at most one
terminal frame. ``SUMMARY:`` carries the JSON array of topic results and
``ERROR:`` a message; neither is line-terminated and both run to the end of
the stream, so their payload may contain line breaks.
"""
from __future__ import annotations

import codecs
import re
from typing import AsyncIterable, AsyncIterator, Iterable

from loguru import logger
from pydantic import ValidationError

from app.models.events import Failure, Progress, Result, StreamEvent
from app.models.schemas import dump_results, load_results
from app.services.streaming import NO_TOPICS_MESSAGE

STATUS_MARKER = "STATUS:"
RESULT_MARKER = "SUMMARY:"
ERROR_MARKER = "ERROR:"

ENCODING_FAILED_MESSAGE = "Failed to encode summary."

_LINE_BREAK = re.compile(r"\r?\n")


def encode_event(event: StreamEvent) -> str:
    if isinstance(event, Progress):
        # A status frame ends at the first line break.
        text = " ".join(event.text.splitlines()).strip()
        return f"{STATUS_MARKER}{text}\n"
    if isinstance(event, Result):
        if not event.results and event.message:
            return f"{RESULT_MARKER}{event.message}"
        return f"{RESULT_MARKER}{dump_results(event.results)}"
    if isinstance(event, Failure):
        return f"{ERROR_MARKER}{event.message}"
    raise TypeError(f"Unsupported event: {event!r}")


async def encode_events(events: AsyncIterable[StreamEvent]) -> AsyncIterator[bytes]:
    """Encode an event stream to bytes.

    The source is always drained so it can finish its own cleanup, but
    nothing is written after the first terminal frame.
    """
    terminated = False
    async for event in events:
        if terminated:
            logger.warning(f"Dropping {type(event).__name__} event after terminal frame")
            continue
        try:
            frame = encode_event(event)
        except Exception as e:
            logger.exception(f"Failed to encode {type(event).__name__} frame: {e}")
            frame = ERROR_MARKER + ENCODING_FAILED_MESSAGE
        yield frame.encode("utf-8")
        terminated = not frame.startswith(STATUS_MARKER)


def _decode_terminal(marker: str, payload: str) -> StreamEvent:
    if marker == ERROR_MARKER:
        return Failure(message=payload)
    if payload.strip() == NO_TOPICS_MESSAGE:
        return Result(results=(), message=NO_TOPICS_MESSAGE)
    try:
        return Result(results=load_results(payload))
    except ValidationError as e:
        return Failure(message=f"Malformed summary payload: {e.error_count()} error(s)")


class StreamDecoder:
    """Incremental decoder for the consumer side of the stream.

    Feed raw chunks as they arrive; status events are returned as soon as
    their line is complete, the terminal event once the stream is closed.
    """

    def __init__(self) -> None:
        self._pending = ""
        self._terminal_marker: str | None = None
        self._terminal_payload: list[str] = []
        self._closed = False
        self._utf8 = codecs.getincrementaldecoder("utf-8")()

    @property
    def in_terminal_frame(self) -> bool:
        return self._terminal_marker is not None

    def feed(self, chunk: str | bytes) -> list[StreamEvent]:
        if self._closed:
            raise RuntimeError("Decoder already closed")
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        if self._terminal_marker is not None:
            self._terminal_payload.append(chunk)
            return []

        self._pending += chunk
        events: list[StreamEvent] = []
        while self._terminal_marker is None:
            for marker in (RESULT_MARKER, ERROR_MARKER):
                if self._pending.startswith(marker):
                    self._terminal_marker = marker
                    self._terminal_payload.append(self._pending[len(marker):])
                    self._pending = ""
                    return events
            match = _LINE_BREAK.search(self._pending)
            if match is None:
                break
            line = self._pending[: match.start()]
            self._pending = self._pending[match.end():]
            if line.startswith(STATUS_MARKER):
                events.append(Progress(text=line[len(STATUS_MARKER):].strip()))
            elif line:
                logger.debug(f"Ignoring unrecognized stream line: {line[:80]}")
        return events

    def close(self) -> list[StreamEvent]:
        self._closed = True
        tail = self._utf8.decode(b"", final=True)
        if tail:
            if self._terminal_marker is not None:
                self._terminal_payload.append(tail)
            else:
                self._pending += tail
        if self._terminal_marker is None:
            leftover = self._pending
            self._pending = ""
            for marker in (RESULT_MARKER, ERROR_MARKER):
                if leftover.startswith(marker):
                    return [_decode_terminal(marker, leftover[len(marker):])]
            if leftover.startswith(STATUS_MARKER):
                return [Progress(text=leftover[len(STATUS_MARKER):].strip())]
            return []
        payload = "".join(self._terminal_payload)
        return [_decode_terminal(self._terminal_marker, payload)]


def decode_chunks(chunks: Iterable[str | bytes]) -> list[StreamEvent]:
    decoder = StreamDecoder()
    events: list[StreamEvent] = []
    for chunk in chunks:
        events.extend(decoder.feed(chunk))
    events.extend(decoder.close())
    return events


def decode_text(text: str) -> list[StreamEvent]:
    return decode_chunks([text])
