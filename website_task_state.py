"""
State models supporting the website query workflow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

STAGES = ("loading", "processing", "embedding", "generating", "done", "failed")


@dataclass(slots=True)
class WebsiteTaskState:
    """Progress of a single URL through fetch, chunk, embed and answer."""

    url: str
    stage: str = "loading"
    cache_hit: bool = False
    chunk_count: int = 0
    answer: Optional[str] = None
    error: Optional[str] = None
    id: str = field(default_factory=lambda: uuid4().hex)

    def advance(self, stage: str) -> None:
        if stage not in STAGES:
            raise ValueError(f"Unknown stage '{stage}'.")
        self.stage = stage
