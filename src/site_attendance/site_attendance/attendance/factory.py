from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import EventKind
from .strategies.base import StatusStrategy
from .strategies.keep_strategy import KeepStatusStrategy
from .strategies.present_strategy import PresentStrategy
from .strategies.toggle_strategy import ToggleStrategy
from .strategies.vacation_strategy import VacationStrategy


@dataclass
class StatusStrategyFactory:
    """Factory Pattern: choose the status strategy for an event kind."""

    def for_event(self, kind: EventKind) -> StatusStrategy:
        if kind in (EventKind.LOGIN, EventKind.SIGN_IN, EventKind.TIMESHEET, EventKind.REPAIR):
            return PresentStrategy()
        if kind == EventKind.MANUAL_TOGGLE:
            return ToggleStrategy()
        if kind == EventKind.VACATION:
            return VacationStrategy()
        return KeepStatusStrategy()

    def forces_status(self, kind: EventKind) -> bool:
        """Forcing kinds apply their status even when an older event arrives late."""

        return kind == EventKind.VACATION
