from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import StatusStrategy


class VacationStrategy(StatusStrategy):
    """Vacation marking wins over whatever the day held before."""

    def decide(self, current: Optional[AttendanceStatus]) -> AttendanceStatus:
        return AttendanceStatus.VACATION
