from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from app.models.schemas import SubmissionResult


class EventType(str, Enum):
    PROGRESS = "progress"
    RESULT = "result"
    ERROR = "error"


@dataclass(frozen=True)
class Progress:
    text: str

    event = EventType.PROGRESS

    @property
    def data(self) -> dict[str, Any]:
        return {"status": self.text}


@dataclass(frozen=True)
class Result:
    results: SubmissionResult = ()
    message: str | None = None

    event = EventType.RESULT

    @property
    def data(self) -> dict[str, Any]:
        return {
            "summary": [r.model_dump(mode="json") for r in self.results],
            "message": self.message,
        }


@dataclass(frozen=True)
class Failure:
    message: str

    event = EventType.ERROR

    @property
    def data(self) -> dict[str, Any]:
        return {"message": self.message}


StreamEvent = Union[Progress, Result, Failure]


def to_sse(event: StreamEvent) -> dict[str, str]:
    """Shape an event for sse-starlette's EventSourceResponse."""
    return {"event": event.event.value, "data": json.dumps(event.data)}

