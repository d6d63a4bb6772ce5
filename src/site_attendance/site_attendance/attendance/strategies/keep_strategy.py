from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import StatusStrategy


class KeepStatusStrategy(StatusStrategy):
    """Sign-out and the midnight sweep only touch check-out fields."""

    def decide(self, current: Optional[AttendanceStatus]) -> AttendanceStatus:
        return current or AttendanceStatus.PRESENT
