"""Midnight sweep: force-close sign-in sessions left open past their day.

Not scheduled in-process. An external scheduler (cron, platform job) calls
``sweep`` shortly after midnight site time; see ``scripts/run_sweep.py``.
Every open session dated on or before yesterday is a candidate, so a worker
who failed last night or a missed run is picked up by the next one.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from ..attendance.service import AttendanceService
from ..common.datetime_utils import SiteClock
from .model import SignInSession
from .repository import SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    swept_date: date
    closed_sessions: list[SignInSession] = field(default_factory=list)
    affected_workers: list[int] = field(default_factory=list)
    failures: dict[int, str] = field(default_factory=dict)
    closed_by_date: dict[date, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        return {
            "date": self.swept_date.isoformat(),
            "signed_out": len(self.closed_sessions),
            "closed_sessions": [s.to_dict() for s in self.closed_sessions],
            "closed_by_date": {d.isoformat(): n for d, n in sorted(self.closed_by_date.items())},
            "affected_workers": list(self.affected_workers),
            "failures": {str(k): v for k, v in self.failures.items()},
        }


class MidnightSweepService:
    def __init__(self, sessions: SessionRepository, attendance: AttendanceService, *, clock: SiteClock):
        self._sessions = sessions
        self._attendance = attendance
        self._clock = clock

    def sweep(self, as_of_date: Optional[date] = None) -> SweepReport:
        """Close every session still open from a day before ``as_of_date``.

        Each session is closed at the end of its own business date. Safe to
        repeat: sessions already closed are simply not found again. A failure
        for one worker is recorded and the batch carries on.
        """

        as_of = as_of_date or self._clock.today()
        through = as_of - timedelta(days=1)
        report = SweepReport(swept_date=through)

        dates_by_worker: dict[int, set[date]] = defaultdict(set)
        for s in self._sessions.list_open_through(end_date=through):
            dates_by_worker[s.worker_id].add(s.work_date)

        for worker_id in sorted(dates_by_worker):
            closed_any = False
            for work_date in sorted(dates_by_worker[worker_id]):
                try:
                    while True:
                        closed = self._attendance.close_stale_session(worker_id=worker_id, work_date=work_date)
                        if closed is None:
                            break
                        report.closed_sessions.append(closed)
                        report.closed_by_date[work_date] = report.closed_by_date.get(work_date, 0) + 1
                        closed_any = True
                except Exception as e:
                    logger.exception("sweep failed for worker_id=%s date=%s", worker_id, work_date)
                    report.failures[worker_id] = f"{work_date.isoformat()}: {str(e) or type(e).__name__}"
            if closed_any:
                report.affected_workers.append(worker_id)

        logger.info(
            "midnight sweep through %s: closed=%s workers=%s failed=%s",
            through, len(report.closed_sessions), len(report.affected_workers), len(report.failures),
        )
        return report
