from __future__ import annotations

import logging
from dataclasses import dataclass

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, WorkerNotFound
from .model import Worker
from .repository import WorkerRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedWorker:
    """What the boundary hands to the core: stable id, canonical name, role."""

    worker_id: int
    canonical_name: str
    role: Role


class IdentityService:
    """Use cases: resolve a typed name to a worker, PIN login."""

    def __init__(self, workers: WorkerRepository):
        self._workers = workers

    @staticmethod
    def _resolved(worker: Worker) -> ResolvedWorker:
        return ResolvedWorker(worker_id=worker.worker_id, canonical_name=worker.name, role=worker.role)

    def resolve_worker(self, name: str) -> ResolvedWorker:
        name = require_non_empty(name, "Worker name")
        worker = self._workers.get_by_name(name)
        if not worker or not worker.is_active:
            raise WorkerNotFound(f"Worker not found: {name}")
        return self._resolved(worker)

    def get_worker(self, worker_id: int) -> ResolvedWorker:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker or not worker.is_active:
            raise WorkerNotFound(f"Worker not found: {worker_id}")
        return self._resolved(worker)

    def authenticate(self, name: str, pin: str) -> ResolvedWorker:
        """PIN login. Unknown name and wrong PIN are reported differently."""

        name = require_non_empty(name, "Name")
        worker = self._workers.get_by_name(name)
        if not worker or not worker.is_active:
            logger.info("login failed for unknown worker %r", name)
            raise AuthenticationError("User not found")

        try:
            ok = check_password_hash(worker.pin_hash, pin or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.info("login failed for worker_id=%s: invalid PIN", worker.worker_id)
            raise AuthenticationError("Invalid PIN")

        return self._resolved(worker)
