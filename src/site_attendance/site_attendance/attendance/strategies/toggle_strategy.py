from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import StatusStrategy


class ToggleStrategy(StatusStrategy):
    """Supervisor toggle: present -> absent, anything else -> present."""

    def decide(self, current: Optional[AttendanceStatus]) -> AttendanceStatus:
        if current == AttendanceStatus.PRESENT:
            return AttendanceStatus.ABSENT
        return AttendanceStatus.PRESENT
