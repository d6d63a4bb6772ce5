from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import StatusStrategy


class PresentStrategy(StatusStrategy):
    """Login, sign-in, timesheet submission: the worker was on site."""

    def decide(self, current: Optional[AttendanceStatus]) -> AttendanceStatus:
        return AttendanceStatus.PRESENT
