"""Standby admission queue.

Students detected before any subject is active wait here. The next subject
activation consumes every entry exactly once.
"""
import logging
from datetime import datetime
from typing import List, Optional
from attendance_tracker import db
from attendance_tracker.exceptions import (
    StandbyClosed, StandbyEntryNotFound, StudentNotFound
)
from attendance_tracker.models import (
    Attendance, AttendanceRecord, AttendanceStatus, StandbyStudent, Student, Subject
)
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

class StandbyService:
    """Service for standby entries."""

    @staticmethod
    def admit(student_id: int, detected_at: Optional[datetime] = None,
              status=AttendanceStatus.PRESENT) -> StandbyStudent:
        """Queue a student until the next activation. Re-admission returns the existing entry."""
        if not db.session.get(Student, student_id):
            raise StudentNotFound(f"Student {student_id} not found")

        if Subject.query.filter_by(active=True).first():
            raise StandbyClosed()

        existing = StandbyStudent.query.filter_by(student_id=student_id).first()
        if existing:
            logger.debug("Student %s already on standby", student_id)
            return existing

        entry = StandbyStudent(
            student_id=student_id,
            detected_at=detected_at or utcnow(),
            status=AttendanceStatus.parse(status)
        )
        entry.save()

        logger.info("Student %s admitted to standby as %s", student_id, entry.status.value)
        return entry

    @staticmethod
    def list_entries() -> List[StandbyStudent]:
        return StandbyStudent.query.order_by(StandbyStudent.detected_at.asc()).all()

    @staticmethod
    def get_entry(entry_id: int) -> StandbyStudent:
        entry = db.session.get(StandbyStudent, entry_id)
        if not entry:
            raise StandbyEntryNotFound(f"Standby entry {entry_id} not found")
        return entry

    @staticmethod
    def update_status(entry_id: int, status) -> StandbyStudent:
        entry = StandbyService.get_entry(entry_id)
        entry.status = AttendanceStatus.parse(status)
        db.session.commit()
        return entry

    @staticmethod
    def remove(entry_id: int) -> None:
        entry = StandbyService.get_entry(entry_id)
        entry.delete()
        logger.info("Standby entry %s removed", entry_id)

    @staticmethod
    def drain(attendance: Attendance, subject: Subject, now: datetime,
              break_seconds: int) -> List[AttendanceRecord]:
        """Turn every entry into a record for the subject and delete it. Does not commit.

        The record starts at the subject's scheduled start, not at the
        detection time.
        """
        from attendance_tracker.services.session_service import upsert_record

        records = []
        time_start = subject.scheduled_start_or(now)

        for entry in StandbyService.list_entries():
            record, _ = upsert_record(
                attendance.id, entry.student_id, subject.id,
                status=entry.status,
                time_start=time_start,
                time_end=None,
                break_time=break_seconds,
                paused=False,
                pause_clock_at=None
            )
            records.append(record)
            db.session.delete(entry)
            logger.info("Standby student %s drained into subject %s as %s",
                        entry.student_id, subject.id, entry.status.value)

        return records
