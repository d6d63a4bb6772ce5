from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class Worker:
    """Domain entity: a person who can sign in on site.

    Identity is the numeric id. The name is for display and for the one-time
    case-insensitive lookup at the request boundary.
    """

    worker_id: int
    name: str
    role: Role
    pin_hash: str = ""
    is_active: bool = True
