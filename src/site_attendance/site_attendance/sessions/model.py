from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class SignInSession:
    """A worker's presence on a project for part of a business date."""

    session_id: int
    worker_id: int
    work_date: date
    project: str
    started_at: datetime
    ended_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.session_id,
            "worker_id": self.worker_id,
            "date": self.work_date.isoformat(),
            "project": self.project,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
