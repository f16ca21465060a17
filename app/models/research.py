from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AccumulatedContent:
    """Text gathered for one topic and the links that contributed to it."""

    text: str = ""
    sources: tuple[str, ...] = ()
    word_count: int = 0
    attempts: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

