from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Search (SerpAPI)
    serpapi_api_key: str = ""
    serpapi_key_path: str = "serpapi.key"  # read when serpapi_api_key is empty
    search_endpoint: str = "https://serpapi.com/search.json"
    search_engine: str = "google"
    search_results_per_query: int = 10

    # Text generation (Ollama-compatible /api/generate)
    generation_endpoint: str = "http://localhost:11434/api/generate"
    generation_models: str = "llama3.2:latest,llama3.1:latest"
    generation_timeout: float = 120.0

    # Research collection
    word_accumulation_target: int = 10000
    max_collection_attempts: int = 10
    extraction_timeout: float = 10.0
    extraction_max_chars: int = 2000
    inter_request_delay: float = 1.5
    topic_extraction: str = "lines"  # lines | llm

    # App
    log_dir: str = "logs"
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def model_preference_list(self) -> list[str]:
        return [m.strip() for m in self.generation_models.split(",") if m.strip()]

    def resolved_serpapi_key(self) -> str:
        if self.serpapi_api_key.strip():
            return self.serpapi_api_key.strip()
        try:
            return Path(self.serpapi_key_path).read_text(encoding="utf-8").strip()
        except OSError:
            return ""


settings = Settings()


@dataclass(frozen=True)
class PipelineConfig:
    """Options a submission pipeline is constructed with."""

    search_endpoint: str = "https://serpapi.com/search.json"
    search_api_key: str = ""
    search_engine: str = "google"
    search_results_per_query: int = 10
    generation_endpoint: str = "http://localhost:11434/api/generate"
    model_preference_order: tuple[str, ...] = ("llama3.2:latest", "llama3.1:latest")
    generation_timeout: float = 120.0
    word_accumulation_target: int = 10000
    max_collection_attempts: int = 10
    extraction_timeout: float = 10.0
    extraction_max_chars: int = 2000
    inter_request_delay: float = 1.5
    topic_extraction: str = "lines"
    log_dir: str = "logs"

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "PipelineConfig":
        s = source or settings
        return cls(
            search_endpoint=s.search_endpoint,
            search_api_key=s.resolved_serpapi_key(),
            search_engine=s.search_engine,
            search_results_per_query=s.search_results_per_query,
            generation_endpoint=s.generation_endpoint,
            model_preference_order=tuple(s.model_preference_list),
            generation_timeout=s.generation_timeout,
            word_accumulation_target=s.word_accumulation_target,
            max_collection_attempts=s.max_collection_attempts,
            extraction_timeout=s.extraction_timeout,
            extraction_max_chars=s.extraction_max_chars,
            inter_request_delay=s.inter_request_delay,
            topic_extraction=s.topic_extraction.lower().strip(),
            log_dir=s.log_dir,
        )
