"""Stage-transition observability hooks.

The orchestrator emits one StageEvent per transition through an injected
hook. Analyzers do not log progress themselves; they report an outcome.
"""

import logging
from typing import Callable

from models.schemas.stage_event import StageEvent

logger = logging.getLogger(__name__)

EventHook = Callable[[StageEvent], None]


def log_event(event: StageEvent) -> None:
    """Default hook: one structured log line per event."""
    level = logging.WARNING if event.status == "fell_back" else logging.INFO
    logger.log(
        level,
        "stage=%s dimension=%s status=%s elapsed_ms=%.1f detail=%s",
        event.stage,
        event.dimension or "-",
        event.status,
        event.elapsed_ms,
        event.detail or "-",
    )


class RecordingHook:
    """Collects events in order; optionally forwards to another hook."""

    def __init__(self, forward: EventHook | None = None) -> None:
        self.events: list[StageEvent] = []
        self._forward = forward

    def __call__(self, event: StageEvent) -> None:
        self.events.append(event)
        if self._forward is not None:
            self._forward(event)

    def statuses(self, stage: str | None = None) -> list[tuple[str, str | None, str]]:
        return [(e.stage, e.dimension, e.status) for e in self.events if stage is None or e.stage == stage]

    def for_dimension(self, dimension: str) -> list[StageEvent]:
        return [e for e in self.events if e.dimension == dimension]
