"""Session state machine for attendance records.

NOT_STARTED -> ACTIVE <-> ON_BREAK -> ENDED. Every action validates its
preconditions before touching the record, so a rejected action leaves the
record exactly as it was.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple
from flask import current_app
from sqlalchemy.exc import IntegrityError
from attendance_tracker import db
from attendance_tracker.exceptions import (
    BreakPreconditionViolation, NoActiveSubject, RecordAlreadyStarted,
    RecordNotFound, RecordNotStarted, SessionEnded, StudentNotFound,
    SubjectNotFound
)
from attendance_tracker.models import (
    Attendance, AttendanceRecord, AttendanceStatus, Student, Subject
)
from attendance_tracker.services.session_tracker import (
    SessionState, consume_break, derive_state, projected_render, session_limit
)
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

def default_break_seconds() -> int:
    return current_app.config.get('DEFAULT_BREAK_SECONDS', 600)

def record_state(record: AttendanceRecord) -> SessionState:
    """Current state machine state of a stored record."""
    return derive_state(record.time_start, record.time_end, record.paused, record.break_time)

def upsert_record(attendance_id: int, student_id: int, subject_id: int,
                  **fields) -> Tuple[AttendanceRecord, bool]:
    """Create or update the record for a key. Does not commit."""
    record = AttendanceRecord.query.filter_by(
        attendance_id=attendance_id,
        student_id=student_id,
        subject_id=subject_id
    ).first()
    created = record is None

    if created:
        record = AttendanceRecord(
            attendance_id=attendance_id,
            student_id=student_id,
            subject_id=subject_id,
            status=AttendanceStatus.ABSENT,
            break_time=default_break_seconds(),
            paused=False,
            total_time_render=0
        )
        db.session.add(record)

    for key, value in fields.items():
        setattr(record, key, value)

    return record, created

class SessionService:
    """Discrete session actions. Each action is a single-record write."""

    @staticmethod
    def get_record(record_id: int) -> AttendanceRecord:
        record = db.session.get(AttendanceRecord, record_id)
        if not record:
            raise RecordNotFound(f"Attendance record {record_id} not found")
        return record

    @staticmethod
    def resolve_context(attendance_id: Optional[int] = None, subject_id: Optional[int] = None,
                        now: Optional[datetime] = None) -> Tuple[Attendance, Subject]:
        """Attendance day and subject for an action, defaulting to today and the active subject."""
        from attendance_tracker.services.attendance_day_service import AttendanceDayService

        now = now or utcnow()
        if attendance_id is None:
            attendance = AttendanceDayService.ensure_today(now)
        else:
            attendance = AttendanceDayService.get_day(attendance_id)

        if subject_id is None:
            subject = Subject.query.filter_by(active=True).first()
            if not subject:
                raise NoActiveSubject()
        else:
            subject = db.session.get(Subject, subject_id)
            if not subject:
                raise SubjectNotFound(f"Subject {subject_id} not found")

        return attendance, subject

    @staticmethod
    def start(record_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        """Start time tracking for an existing record."""
        now = now or utcnow()
        record = SessionService.get_record(record_id)
        SessionService._begin(record, now)
        db.session.commit()

        logger.info("Session started for record %s at %s", record.id, now.isoformat())
        _notify_engine(record)
        return record

    @staticmethod
    def start_for_student(student_id: int, attendance_id: Optional[int] = None,
                          subject_id: Optional[int] = None,
                          now: Optional[datetime] = None) -> AttendanceRecord:
        """Start time tracking for a student, creating the record if needed."""
        now = now or utcnow()
        if not db.session.get(Student, student_id):
            raise StudentNotFound(f"Student {student_id} not found")

        attendance, subject = SessionService.resolve_context(attendance_id, subject_id, now)

        try:
            record, created = upsert_record(attendance.id, student_id, subject.id)
            SessionService._begin(record, now)
            db.session.commit()
        except IntegrityError:
            # Another writer created the same key first
            db.session.rollback()
            record, created = upsert_record(attendance.id, student_id, subject.id)
            SessionService._begin(record, now)
            db.session.commit()

        logger.info("Session started for student %s (record %s, created=%s)",
                    student_id, record.id, created)
        _notify_engine(record)
        return record

    @staticmethod
    def _begin(record: AttendanceRecord, now: datetime) -> None:
        if record.time_start is not None:
            raise RecordAlreadyStarted(f"Record {record.id} has already been started")

        record.time_start = now
        record.time_end = None
        record.break_time = default_break_seconds()
        record.paused = False
        record.pause_clock_at = None
        record.total_time_render = 0

    @staticmethod
    def stop(record_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        """End time tracking. A running break is settled first."""
        now = now or utcnow()
        record = SessionService.get_record(record_id)
        SessionService._require_running(record)

        duration_seconds = record.subject.duration_seconds if record.subject else None
        if record.paused:
            SessionService._settle_break(record, now, duration_seconds)

        limit = session_limit(record.time_start, duration_seconds)
        record.total_time_render = projected_render(
            record.time_start, None, record.paused, record.break_time,
            record.total_time_render, record.pause_clock_at, now, duration_seconds
        )
        record.time_end = min(now, limit) if limit else now
        record.paused = False
        record.pause_clock_at = None
        db.session.commit()

        logger.info("Session ended for record %s (render=%ss)", record.id, record.total_time_render)
        _notify_engine(record)
        return record

    @staticmethod
    def pause_break(record_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        """Put a running session on break."""
        now = now or utcnow()
        record = SessionService.get_record(record_id)
        SessionService._require_running(record)

        if record.paused:
            raise BreakPreconditionViolation("Student is already on break")
        if (record.break_time or 0) <= 0:
            raise BreakPreconditionViolation("No break time remaining")

        duration_seconds = record.subject.duration_seconds if record.subject else None
        record.total_time_render = projected_render(
            record.time_start, None, False, record.break_time,
            record.total_time_render, None, now, duration_seconds
        )
        record.paused = True
        record.pause_clock_at = now
        db.session.commit()

        logger.info("Break started for record %s with %ss remaining", record.id, record.break_time)
        _notify_engine(record)
        return record

    @staticmethod
    def resume_break(record_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        """Return a session from break, charging the time spent to the budget."""
        now = now or utcnow()
        record = SessionService.get_record(record_id)
        SessionService._require_running(record)

        if not record.paused:
            raise BreakPreconditionViolation("Student is not on break")

        duration_seconds = record.subject.duration_seconds if record.subject else None
        SessionService._settle_break(record, now, duration_seconds)
        db.session.commit()

        logger.info("Break ended for record %s with %ss remaining", record.id, record.break_time)
        _notify_engine(record)
        return record

    @staticmethod
    def _settle_break(record: AttendanceRecord, now: datetime,
                      duration_seconds: Optional[int]) -> None:
        record.total_time_render = projected_render(
            record.time_start, None, True, record.break_time,
            record.total_time_render, record.pause_clock_at, now, duration_seconds
        )
        record.break_time = consume_break(record.break_time, record.pause_clock_at, now)
        record.paused = False
        record.pause_clock_at = None

    @staticmethod
    def _require_running(record: AttendanceRecord) -> None:
        if record.time_start is None:
            raise RecordNotStarted(f"Record {record.id} has not been started")
        if record.time_end is not None:
            raise SessionEnded(f"Record {record.id} has already ended")

    @staticmethod
    def set_status(student_id: int, status, attendance_id: Optional[int] = None,
                   subject_id: Optional[int] = None,
                   now: Optional[datetime] = None) -> AttendanceRecord:
        """Manually set a student's status for a day and subject."""
        from attendance_tracker.services.status_reconciler import sweep_guard

        now = now or utcnow()
        status = AttendanceStatus.parse(status)
        if not db.session.get(Student, student_id):
            raise StudentNotFound(f"Student {student_id} not found")

        attendance, subject = SessionService.resolve_context(attendance_id, subject_id, now)

        # Never interleave with a running sweep of the same pair
        with sweep_guard(attendance.id, subject.id):
            record, created = upsert_record(attendance.id, student_id, subject.id, status=status)
            db.session.commit()

        logger.info("Status of student %s set to %s (record %s)", student_id, status.value, record.id)
        _notify_engine(record)
        return record

def _notify_engine(record: AttendanceRecord) -> None:
    from attendance_tracker.services.session_engine import get_engine

    engine = get_engine()
    if engine is not None:
        engine.sync_record(record)

