from __future__ import annotations

from pydantic import BaseModel, ConfigDict, TypeAdapter


class TopicResult(BaseModel):
    """One researched topic. Field names and order are the wire contract."""

    model_config = ConfigDict(frozen=True)

    topic: str
    translated: str
    summary: str
    sources: tuple[str, ...] = ()


SubmissionResult = tuple[TopicResult, ...]

_results_adapter = TypeAdapter(list[TopicResult])


def dump_results(results: SubmissionResult | list[TopicResult]) -> str:
    """Serialize topic results as an ordered JSON array."""
    return _results_adapter.dump_json(list(results)).decode("utf-8")


def load_results(payload: str | bytes) -> SubmissionResult:
    return tuple(_results_adapter.validate_json(payload))


# --- Responses ---


class SummaryResponse(BaseModel):
    summary: list[TopicResult]
    message: str | None = None


class ContentSummaryResponse(BaseModel):
    summary: str


class ModelInfo(BaseModel):
    id: str
    position: int


class ModelsResponse(BaseModel):
    models: list[ModelInfo]
