from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import SignInSession


class SessionRepository(Protocol):
    """Read side of the session store. Writes go through an attendance unit."""

    def list_open(self, *, work_date: date, project: Optional[str] = None) -> Sequence[SignInSession]:
        raise NotImplementedError

    def list_open_through(self, *, end_date: date) -> Sequence[SignInSession]:
        """Open sessions dated on or before ``end_date``, oldest first."""
        raise NotImplementedError

    def list_for_worker(self, *, worker_id: int, work_date: Optional[date] = None) -> Sequence[SignInSession]:
        raise NotImplementedError

    def list_for_date(self, *, work_date: date) -> Sequence[SignInSession]:
        raise NotImplementedError
