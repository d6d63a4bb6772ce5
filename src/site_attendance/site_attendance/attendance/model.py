from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, EventKind


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None

    def is_empty(self) -> bool:
        return self.latitude is None and self.longitude is None and not self.address

    def fill_from(self, other: Optional["Location"]) -> "Location":
        """First write wins: only fields still unset are taken from ``other``."""

        if other is None:
            return self
        return Location(
            latitude=self.latitude if self.latitude is not None else other.latitude,
            longitude=self.longitude if self.longitude is not None else other.longitude,
            address=self.address if self.address else (other.address or None),
        )


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: the single attendance row for (worker, business date).

    ``status_at``/``status_source`` remember which event last set the status,
    so an older or replayed event cannot overwrite a newer one.
    """

    worker_id: int
    work_date: date
    status: AttendanceStatus
    status_at: Optional[datetime] = None
    status_source: Optional[EventKind] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    sign_in_location: Location = field(default_factory=Location)
    sign_out_location: Location = field(default_factory=Location)
    attendance_id: Optional[int] = None

    def with_changes(self, **changes) -> "AttendanceRecord":
        return replace(self, **changes)


@dataclass(frozen=True)
class RosterRow:
    """Read-model for the daily roster screen."""

    worker_id: int
    worker_name: str
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    sign_in_location: Location
    sign_out_location: Location

    def to_dict(self) -> dict:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "worker_id": self.worker_id,
            "worker_name": self.worker_name,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "check_in_time": _ts(self.check_in_time),
            "check_out_time": _ts(self.check_out_time),
            "sign_in_latitude": self.sign_in_location.latitude,
            "sign_in_longitude": self.sign_in_location.longitude,
            "sign_in_address": self.sign_in_location.address,
            "sign_out_latitude": self.sign_out_location.latitude,
            "sign_out_longitude": self.sign_out_location.longitude,
            "sign_out_address": self.sign_out_location.address,
        }


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "worker_id": r.worker_id,
        "date": r.work_date.isoformat(),
        "status": r.status.value,
        "check_in_time": r.check_in_time.isoformat() if r.check_in_time else None,
        "check_out_time": r.check_out_time.isoformat() if r.check_out_time else None,
        "sign_in_latitude": r.sign_in_location.latitude,
        "sign_in_longitude": r.sign_in_location.longitude,
        "sign_in_address": r.sign_in_location.address,
        "sign_out_latitude": r.sign_out_location.latitude,
        "sign_out_longitude": r.sign_out_location.longitude,
        "sign_out_address": r.sign_out_location.address,
    }
