from __future__ import annotations

from typing import Iterable

from app.models.events import Failure, Progress, Result
from app.models.schemas import TopicResult

NO_TOPICS_MESSAGE = "No topics found."


def progress(text: str) -> Progress:
    return Progress(text=text)


def result(results: Iterable[TopicResult]) -> Result:
    """Emit the final aggregate, one record per topic in input order."""
    return Result(results=tuple(results))


def no_topics() -> Result:
    return Result(results=(), message=NO_TOPICS_MESSAGE)


def error(message: str) -> Failure:
    return Failure(message=message)
