from __future__ import annotations

from datetime import date
from typing import Optional

from ..core.constants import MAX_VACATION_SPAN_DAYS
from ..core.exceptions import ValidationError, WorkerNotFound
from ..workers.repository import WorkerRepository
from .model import VacationPeriod
from .repository import VacationRepository


class VacationService:
    def __init__(self, vacations: VacationRepository, workers: WorkerRepository):
        self._vacations = vacations
        self._workers = workers

    def create_period(self, *, worker_id: int, start_date: date, end_date: date, notes: Optional[str] = None) -> int:
        if end_date < start_date:
            raise ValidationError("Vacation end date cannot be before start date")
        if (end_date - start_date).days + 1 > MAX_VACATION_SPAN_DAYS:
            raise ValidationError(f"Vacation period cannot exceed {MAX_VACATION_SPAN_DAYS} days")
        if not self._workers.get_by_id(int(worker_id)):
            raise WorkerNotFound(f"Worker not found: {worker_id}")
        notes = notes.strip() if notes else None
        return self._vacations.create(worker_id=int(worker_id), start_date=start_date, end_date=end_date, notes=notes)

    def list_for_worker(self, worker_id: int) -> list[VacationPeriod]:
        return list(self._vacations.list_for_worker(int(worker_id)))

    def is_on_vacation(self, worker_id: int, day: date) -> bool:
        return self._vacations.find_covering(int(worker_id), day) is not None
