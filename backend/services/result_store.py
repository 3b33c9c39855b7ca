"""Persistence seam for finished evaluations.

The pipeline only needs put/get by evaluation id; durable storage lives
outside this service and plugs in through the ResultStore protocol.
"""

import threading
from typing import Protocol

from models.responses import EvaluationResult


class ResultStore(Protocol):
    def put(self, result: EvaluationResult) -> None: ...

    def get(self, evaluation_id: str) -> EvaluationResult | None: ...


class InMemoryResultStore:
    def __init__(self) -> None:
        self._results: dict[str, EvaluationResult] = {}
        self._lock = threading.Lock()

    def put(self, result: EvaluationResult) -> None:
        with self._lock:
            self._results[result.evaluation_id] = result

    def get(self, evaluation_id: str) -> EvaluationResult | None:
        with self._lock:
            return self._results.get(evaluation_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)
