from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..model import OvertimeSplit, TimesheetEntry


class OvertimePolicy(ABC):
    """Policy interface (Strategy Pattern for overtime attribution)."""

    @abstractmethod
    def allocate(self, entries: Sequence[TimesheetEntry]) -> list[OvertimeSplit]:
        """``entries`` belong to one worker and one week."""

        raise NotImplementedError
