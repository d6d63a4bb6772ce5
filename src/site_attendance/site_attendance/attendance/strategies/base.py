from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ...core.enums import AttendanceStatus


class StatusStrategy(ABC):
    """Strategy Pattern: encapsulate how an event moves the daily status."""

    @abstractmethod
    def decide(self, current: Optional[AttendanceStatus]) -> AttendanceStatus:
        """``current`` is None when the event creates the record."""

        raise NotImplementedError
