from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import VacationPeriod


class VacationRepository(Protocol):
    def create(self, *, worker_id: int, start_date: date, end_date: date, notes: Optional[str] = None) -> int:
        """Idempotent on (worker, start, end): returns the existing id on repeat."""

        raise NotImplementedError

    def list_for_worker(self, worker_id: int) -> Sequence[VacationPeriod]:
        raise NotImplementedError

    def find_covering(self, worker_id: int, day: date) -> Optional[VacationPeriod]:
        raise NotImplementedError

    def worker_ids_on_vacation(self, day: date) -> Sequence[int]:
        raise NotImplementedError
