from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable


@dataclass(frozen=True)
class ModelHealthRecord:
    model_id: str
    is_working: bool
    last_checked: float


class ModelHealthTable:
    """In-memory hint about which candidate models answered last time.

    Best effort and process-local; nothing is persisted.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._records: dict[str, ModelHealthRecord] = {}
        self._clock = clock

    def mark(self, model_id: str, is_working: bool) -> None:
        self._records[model_id] = ModelHealthRecord(model_id, is_working, self._clock())

    def get(self, model_id: str) -> ModelHealthRecord | None:
        return self._records.get(model_id)

    def is_failing(self, model_id: str) -> bool:
        record = self._records.get(model_id)
        return record is not None and not record.is_working

    def order(self, models: Iterable[str]) -> list[str]:
        # stable partition: working or unknown first
        models = list(models)
        return [m for m in models if not self.is_failing(m)] + [m for m in models if self.is_failing(m)]
