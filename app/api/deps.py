from __future__ import annotations

from typing import Any

from app.agents.orchestrator import SubmissionOrchestrator
from app.config import PipelineConfig, settings
from app.llm_client import GenerationClient


def get_pipeline_config() -> PipelineConfig:
    return PipelineConfig.from_settings(settings)


def get_orchestrator() -> SubmissionOrchestrator:
    """A fresh orchestrator per request; submissions never share state."""
    return SubmissionOrchestrator(get_pipeline_config())


def get_generation_client() -> GenerationClient:
    return GenerationClient(get_pipeline_config())


def get_available_models() -> list[dict[str, Any]]:
    """Return the configured generation models in fallback order."""
    return [
        {"id": model, "position": index}
        for index, model in enumerate(settings.model_preference_list, 1)
    ]
