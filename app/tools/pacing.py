from __future__ import annotations

import asyncio
import time


class SearchPacer:
    """Keeps successive search calls of one submission at least ``delay`` seconds apart."""

    def __init__(self, delay: float):
        self.delay = max(float(delay), 0.0)
        self._last_call: float | None = None

    async def wait(self) -> None:
        if self._last_call is not None and self.delay > 0:
            remaining = self.delay - (time.monotonic() - self._last_call)
            if remaining > 0:
                await asyncio.sleep(remaining)
        self._last_call = time.monotonic()
