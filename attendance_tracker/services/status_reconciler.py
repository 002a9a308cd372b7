"""Status reconciliation (auto-adjust).

Status is derived from how much of the subject a student attended and whether
they started after the scheduled start. The decision is pure, so re-running a
sweep with unchanged inputs writes nothing.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from flask import current_app
from attendance_tracker import db
from attendance_tracker.exceptions import (
    AttendanceError, DurationUnavailable, SubjectNotFound, SweepInProgress
)
from attendance_tracker.models import AttendanceRecord, AttendanceStatus, Subject
from attendance_tracker.services.session_tracker import elapsed_percentage
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

_guards: Dict[Tuple[int, int], threading.Lock] = {}
_guards_lock = threading.Lock()

def _guard_for(attendance_id: int, subject_id: int) -> threading.Lock:
    with _guards_lock:
        return _guards.setdefault((attendance_id, subject_id), threading.Lock())

def prune_guards(current_attendance_id: int) -> int:
    """Drop the guards of every other attendance day. Returns how many were dropped."""
    with _guards_lock:
        stale = [key for key in _guards if key[0] != current_attendance_id]
        for key in stale:
            del _guards[key]
    return len(stale)

@contextmanager
def sweep_guard(attendance_id: int, subject_id: int, blocking: bool = True, timeout: float = 5.0):
    """Exclusive access to the statuses of one (attendance, subject) pair."""
    lock = _guard_for(attendance_id, subject_id)
    acquired = lock.acquire(timeout=timeout) if blocking else lock.acquire(blocking=False)
    if not acquired:
        raise SweepInProgress()
    try:
        yield
    finally:
        lock.release()

def decide_status(time_start: datetime, time_end: Optional[datetime], now: datetime,
                  duration_minutes: int, scheduled_start: Optional[datetime],
                  min_percentage: float) -> AttendanceStatus:
    """ABSENT below the threshold, otherwise LATE or PRESENT."""
    percentage = elapsed_percentage(time_start, time_end, now, duration_minutes)
    if percentage < min_percentage:
        return AttendanceStatus.ABSENT
    is_late = scheduled_start is not None and time_start > scheduled_start
    return AttendanceStatus.LATE if is_late else AttendanceStatus.PRESENT

@dataclass
class SweepResult:
    """Outcome of one auto-adjust sweep."""
    attendance_id: int
    subject_id: int
    checked: int = 0
    updated: List[int] = field(default_factory=list)
    skipped: bool = False

    def to_dict(self):
        return {
            'attendance_id': self.attendance_id,
            'subject_id': self.subject_id,
            'checked': self.checked,
            'updated': self.updated,
            'skipped': self.skipped
        }

class StatusReconciler:
    """Service that re-derives PRESENT/LATE/ABSENT from tracked time."""

    @staticmethod
    def auto_adjust(attendance_id: int, subject_id: int,
                    subject_start_time: Optional[datetime] = None,
                    min_percentage: Optional[float] = None,
                    now: Optional[datetime] = None) -> SweepResult:
        """Sweep every started record of a day and subject.

        EXCUSED records are counted but never re-derived, so an operator's
        excuse survives every sweep even though the threshold rules would
        otherwise apply to it.
        """
        now = now or utcnow()
        if min_percentage is None:
            min_percentage = current_app.config.get('MIN_ATTENDANCE_PERCENTAGE', 75)

        subject = db.session.get(Subject, subject_id)
        if not subject:
            raise SubjectNotFound(f"Subject {subject_id} not found")

        duration_minutes = subject.duration_minutes
        if not duration_minutes:
            raise DurationUnavailable(f"Subject {subject_id} has no duration")

        scheduled_start = subject_start_time or subject.start_time
        result = SweepResult(attendance_id=attendance_id, subject_id=subject_id)

        try:
            with sweep_guard(attendance_id, subject_id, blocking=False):
                records = AttendanceRecord.query.filter(
                    AttendanceRecord.attendance_id == attendance_id,
                    AttendanceRecord.subject_id == subject_id,
                    AttendanceRecord.time_start.isnot(None)
                ).all()

                for record in records:
                    result.checked += 1
                    # An operator's excuse is never re-derived
                    if record.status == AttendanceStatus.EXCUSED:
                        continue

                    status = decide_status(
                        record.time_start, record.time_end, now,
                        duration_minutes, scheduled_start, min_percentage
                    )
                    if status != record.status:
                        logger.info("Record %s: %s -> %s", record.id,
                                    record.status.value if record.status else None, status.value)
                        record.status = status
                        result.updated.append(record.id)

                if result.updated:
                    db.session.commit()
        except SweepInProgress:
            logger.debug("Sweep of attendance %s subject %s already running", attendance_id, subject_id)
            result.skipped = True

        return result

    @staticmethod
    def sweep_active(now: Optional[datetime] = None) -> Optional[SweepResult]:
        """Periodic sweep of today's records for the active subject."""
        from attendance_tracker.services.attendance_day_service import AttendanceDayService

        now = now or utcnow()
        subject = Subject.query.filter_by(active=True).first()
        if not subject:
            return None

        attendance = AttendanceDayService.ensure_today(now)
        try:
            return StatusReconciler.auto_adjust(attendance.id, subject.id, now=now)
        except AttendanceError as e:
            # Only this subject's sweep is affected
            db.session.rollback()
            logger.warning("Auto-adjust of subject %s failed: %s", subject.id, e)
            return None
