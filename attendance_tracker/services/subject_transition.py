"""Subject transition coordinator.

Moving from one active subject to the next migrates every student's session
in a single transaction:

1. Find the currently active subject, if any.
2. Close its attended records (timeEnd = scheduled end) and clear breaks.
3. Seed a record for the new subject per student, inheriting status and
   render time (capped at the new subject's duration) from the closed subject.
4. On the first activation of the day, drain the standby queue instead and
   mark everyone else ABSENT.
5. Deactivate every subject, then activate the new one.

Every write is an upsert keyed by (attendance, student, subject), so a failed
transition is recovered by running the whole migration again.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from flask import current_app
from sqlalchemy.exc import OperationalError
from attendance_tracker import db
from attendance_tracker.exceptions import SubjectNotFound
from attendance_tracker.models import (
    ATTENDED_STATUSES, Attendance, AttendanceRecord, AttendanceStatus, Student, Subject
)
from attendance_tracker.services.attendance_day_service import AttendanceDayService
from attendance_tracker.services.session_engine import get_engine
from attendance_tracker.services.session_service import upsert_record
from attendance_tracker.services.session_tracker import projected_render
from attendance_tracker.services.standby_service import StandbyService
from attendance_tracker.services.transition_lock import get_transition_lock
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

@dataclass
class TransitionResult:
    """Summary of one subject transition."""
    attendance_id: int
    subject_id: Optional[int]
    previous_subject_id: Optional[int] = None
    closed: int = 0
    seeded: int = 0
    drained: int = 0
    changed: bool = True

    def to_dict(self):
        return {
            'attendance_id': self.attendance_id,
            'subject_id': self.subject_id,
            'previous_subject_id': self.previous_subject_id,
            'closed': self.closed,
            'seeded': self.seeded,
            'drained': self.drained,
            'changed': self.changed
        }

class SubjectTransitionCoordinator:
    """Enforces the single active subject and migrates sessions between subjects."""

    @staticmethod
    def active_subject() -> Optional[Subject]:
        return Subject.query.filter_by(active=True).first()

    @staticmethod
    def activate(subject_id: int, now: Optional[datetime] = None) -> TransitionResult:
        """Make ``subject_id`` the active subject."""
        now = now or utcnow()
        retries = current_app.config.get('TRANSITION_RETRIES', 2)

        with get_transition_lock().hold():
            attempt = 0
            while True:
                try:
                    result = SubjectTransitionCoordinator._migrate(subject_id, now)
                    break
                except OperationalError:
                    db.session.rollback()
                    attempt += 1
                    if attempt > retries:
                        raise
                    logger.warning("Transition to subject %s failed, retrying (%s/%s)",
                                   subject_id, attempt, retries)

        engine = get_engine()
        if engine is not None:
            engine.load_active(now)
        return result

    @staticmethod
    def _migrate(subject_id: int, now: datetime) -> TransitionResult:
        subject = db.session.get(Subject, subject_id)
        if not subject:
            raise SubjectNotFound(f"Subject {subject_id} not found")

        attendance = AttendanceDayService.ensure_today(now)
        previous = SubjectTransitionCoordinator.active_subject()

        result = TransitionResult(
            attendance_id=attendance.id,
            subject_id=subject.id,
            previous_subject_id=previous.id if previous else None
        )

        if previous and previous.id == subject.id:
            logger.info("Subject %s is already active", subject.id)
            result.changed = False
            return result

        try:
            if previous:
                result.closed = _close_out(previous, attendance, now)
                result.seeded = _carry_forward(previous, subject, attendance, now)
            else:
                drained = StandbyService.drain(attendance, subject, now, _break_seconds())
                result.drained = len(drained)
                result.seeded = result.drained + _seed_absent(subject, attendance)

            _toggle_active(subject)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("Transition to subject %s rolled back", subject.id)
            raise

        logger.info("Subject %s activated (previous=%s, closed=%s, seeded=%s, drained=%s)",
                    subject.id, result.previous_subject_id, result.closed,
                    result.seeded, result.drained)
        return result

    @staticmethod
    def deactivate_all(now: Optional[datetime] = None) -> TransitionResult:
        """Close the active subject's sessions and leave no subject active."""
        now = now or utcnow()

        with get_transition_lock().hold():
            attendance = AttendanceDayService.ensure_today(now)
            previous = SubjectTransitionCoordinator.active_subject()
            result = TransitionResult(
                attendance_id=attendance.id,
                subject_id=None,
                previous_subject_id=previous.id if previous else None
            )

            try:
                if previous:
                    result.closed = _close_out(previous, attendance, now)
                Subject.query.update({Subject.active: False})
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

        logger.info("All subjects deactivated (previous=%s, closed=%s)",
                    result.previous_subject_id, result.closed)

        engine = get_engine()
        if engine is not None:
            engine.clear()
        return result

def _break_seconds() -> int:
    return current_app.config.get('DEFAULT_BREAK_SECONDS', 600)

def _close_out(subject: Subject, attendance: Attendance, now: datetime) -> int:
    """End the attended sessions of the outgoing subject. Does not commit."""
    closed = 0
    close_at = subject.scheduled_end_or(now)
    render_at = min(now, close_at)
    duration_seconds = subject.duration_seconds

    records = AttendanceRecord.query.filter_by(
        attendance_id=attendance.id,
        subject_id=subject.id
    ).all()

    for record in records:
        if record.status in ATTENDED_STATUSES and record.time_end is None:
            if record.time_start is not None:
                record.total_time_render = projected_render(
                    record.time_start, None, record.paused, record.break_time,
                    record.total_time_render, record.pause_clock_at,
                    render_at, duration_seconds
                )
            record.time_end = close_at
            closed += 1
        record.paused = False
        record.pause_clock_at = None

    return closed

def _carry_forward(previous: Subject, subject: Subject, attendance: Attendance,
                   now: datetime) -> int:
    """Seed one record per student for the incoming subject. Does not commit."""
    prior: Dict[int, AttendanceRecord] = {
        record.student_id: record
        for record in AttendanceRecord.query.filter_by(
            attendance_id=attendance.id,
            subject_id=previous.id
        ).all()
    }
    time_start = subject.scheduled_start_or(now)
    cap = subject.duration_seconds
    seeded = 0

    for student in Student.query.order_by(Student.id).all():
        previous_record = prior.get(student.id)
        status = previous_record.status if previous_record else AttendanceStatus.ABSENT
        render = (previous_record.total_time_render or 0) if previous_record else 0
        # Render time never exceeds the incoming subject's duration
        if cap:
            render = min(render, cap)

        upsert_record(
            attendance.id, student.id, subject.id,
            status=status,
            total_time_render=render,
            time_start=time_start if status in ATTENDED_STATUSES else None,
            time_end=None,
            break_time=_break_seconds(),
            paused=False,
            pause_clock_at=None
        )
        seeded += 1

    return seeded

def _seed_absent(subject: Subject, attendance: Attendance) -> int:
    """ABSENT records for every student who has none yet. Does not commit."""
    db.session.flush()
    existing = {
        student_id for (student_id,) in db.session.query(AttendanceRecord.student_id).filter_by(
            attendance_id=attendance.id,
            subject_id=subject.id
        )
    }
    seeded = 0

    for student in Student.query.order_by(Student.id).all():
        if student.id in existing:
            continue
        upsert_record(attendance.id, student.id, subject.id,
                      status=AttendanceStatus.ABSENT, time_start=None)
        seeded += 1

    return seeded

def _toggle_active(subject: Subject) -> None:
    """Deactivate every subject, then activate one, inside the current transaction."""
    Subject.query.update({Subject.active: False})
    db.session.flush()
    Subject.query.filter_by(id=subject.id).update({Subject.active: True})
