"""Example: drive the service layer directly (no Flask).

Controllers are thin; the reconciliation rules live in the services.
"""

import importlib

from site_attendance.attendance.events import SignedIn, SignedOut
from site_attendance.attendance.model import Location
from site_attendance.config import get_settings_module
from site_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, site_timezone=settings.SITE_TIMEZONE)

    ana = container.identity_service.resolve_worker("ana silva")
    container.attendance_service.reconcile(
        SignedIn(
            worker_id=ana.worker_id,
            project="Tower B",
            occurred_at=container.clock.now(),
            location=Location(latitude=43.6, longitude=-79.6),
        )
    )
    record = container.attendance_service.reconcile(
        SignedOut(worker_id=ana.worker_id, occurred_at=container.clock.now())
    )
    print(record)
    print(container.attendance_service.signed_in_workers())


if __name__ == "__main__":
    main()
