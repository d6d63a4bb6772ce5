from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Worker


class WorkerRepository(Protocol):
    """Repository interface for Worker.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        raise NotImplementedError

    def get_by_name(self, name: str) -> Optional[Worker]:
        """Case-insensitive match on the display name."""

        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[Worker]:
        raise NotImplementedError
