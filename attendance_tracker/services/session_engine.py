"""In-memory session engine.

Holds one ``LiveSession`` per record of the active (attendance, subject) pair
and advances them once per tick. Durable writes are batched by ``flush`` and
the database always wins on ``resync``.
"""
import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from attendance_tracker import db
from attendance_tracker.exceptions import AttendanceError
from attendance_tracker.models import AttendanceRecord, Subject
from attendance_tracker.services.session_tracker import (
    LiveSession, SessionState, advance
)
from attendance_tracker.utils.helpers import format_break_time, format_duration, isoformat, utcnow

logger = logging.getLogger(__name__)

def get_engine() -> Optional['SessionEngine']:
    """Engine of the current application, if any."""
    if not has_app_context():
        return None
    return current_app.extensions.get('session_engine')

def _live_from_record(record: AttendanceRecord) -> LiveSession:
    duration_seconds = record.subject.duration_seconds if record.subject else None
    session = LiveSession(
        record_id=record.id,
        attendance_id=record.attendance_id,
        subject_id=record.subject_id,
        student_id=record.student_id,
        time_start=record.time_start,
        time_end=record.time_end,
        paused=bool(record.paused),
        break_time=record.break_time if record.break_time is not None else 0,
        total_time_render=record.total_time_render or 0,
        duration_seconds=duration_seconds,
        pause_clock_at=record.pause_clock_at
    )
    session.mark_persisted()
    return session

class SessionEngine:
    """Ticks live sessions and keeps them in step with the database."""

    def __init__(self, app=None):
        self.app = app
        self._sessions: Dict[int, LiveSession] = {}
        self._context: Optional[Tuple[int, int]] = None
        self._lock = threading.RLock()

    @property
    def context(self) -> Optional[Tuple[int, int]]:
        """(attendance_id, subject_id) currently tracked."""
        return self._context

    def tracked_ids(self) -> List[int]:
        with self._lock:
            return sorted(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions = {}
            self._context = None

    def forget(self, record_id: int) -> None:
        with self._lock:
            self._sessions.pop(record_id, None)

    def load(self, attendance_id: int, subject_id: int, now: Optional[datetime] = None) -> int:
        """Replace the tracked sessions with the stored records of a pair."""
        now = now or utcnow()
        records = AttendanceRecord.query.filter_by(
            attendance_id=attendance_id,
            subject_id=subject_id
        ).all()

        rearmed = False
        for record in records:
            # A pause without an anchor starts charging from now
            if record.paused and record.time_end is None and record.pause_clock_at is None:
                record.pause_clock_at = now
                rearmed = True
        if rearmed:
            db.session.commit()

        sessions = {record.id: _live_from_record(record) for record in records}
        for session in sessions.values():
            session.last_percentage = session.percentage(now)

        with self._lock:
            self._sessions = sessions
            self._context = (attendance_id, subject_id)

        logger.debug("Session engine tracking %s records of attendance %s subject %s",
                     len(sessions), attendance_id, subject_id)
        return len(sessions)

    def load_active(self, now: Optional[datetime] = None) -> int:
        """Track today's records of the active subject, or nothing."""
        from attendance_tracker.services.attendance_day_service import AttendanceDayService

        now = now or utcnow()
        subject = Subject.query.filter_by(active=True).first()
        if not subject:
            self.clear()
            return 0

        attendance = AttendanceDayService.ensure_today(now)
        return self.load(attendance.id, subject.id, now)

    def resync(self, now: Optional[datetime] = None) -> int:
        """Discard local state and reload from the database."""
        self.clear()
        count = self.load_active(now)
        logger.info("Session engine resynced (%s records)", count)
        return count

    def sync_record(self, record: AttendanceRecord) -> None:
        """Adopt the stored values of a record written by a discrete action."""
        key = (record.attendance_id, record.subject_id)
        with self._lock:
            if self._context is None:
                self._context = key
            elif self._context != key:
                return

            session = _live_from_record(record)
            previous = self._sessions.get(record.id)
            if previous is not None:
                session.last_percentage = previous.last_percentage
            self._sessions[record.id] = session

    def tick(self, now: Optional[datetime] = None) -> List[int]:
        """Advance every session one step. Returns the ids of sessions ended by this tick."""
        from attendance_tracker.services.session_service import SessionService
        from attendance_tracker.services.status_reconciler import StatusReconciler

        now = now or utcnow()
        min_percentage = current_app.config.get('MIN_ATTENDANCE_PERCENTAGE', 75)
        step = current_app.config.get('SESSION_TICK_SECONDS', 1)
        to_end = []
        crossed = False

        with self._lock:
            context = self._context
            for session in self._sessions.values():
                state = advance(session, now, step)
                if state in (SessionState.NOT_STARTED, SessionState.ENDED):
                    continue

                previous = session.last_percentage
                percentage = session.percentage(now)
                session.last_percentage = percentage

                if percentage >= 100:
                    to_end.append(session.record_id)
                elif previous < min_percentage <= percentage:
                    crossed = True

        ended = []
        for record_id in to_end:
            try:
                # stop() settles a running break before ending
                SessionService.stop(record_id, now)
                ended.append(record_id)
            except AttendanceError as e:
                db.session.rollback()
                logger.warning("Auto-end of record %s failed: %s", record_id, e)

        if (crossed or ended) and context is not None:
            try:
                StatusReconciler.auto_adjust(context[0], context[1], now=now)
            except AttendanceError as e:
                db.session.rollback()
                logger.warning("Threshold auto-adjust failed: %s", e)

        return ended

    def flush(self, now: Optional[datetime] = None) -> int:
        """Write dirty break budgets and render times. Returns the number of records written."""
        now = now or utcnow()
        with self._lock:
            pending = [
                session for session in self._sessions.values()
                if session.state not in (SessionState.NOT_STARTED, SessionState.ENDED)
                and (session.dirty or session.paused)
            ]

        if not pending:
            return 0

        written = []
        try:
            for session in pending:
                record = db.session.get(AttendanceRecord, session.record_id)
                if record is None:
                    self.forget(session.record_id)
                    continue
                if record.time_end is not None or bool(record.paused) != session.paused:
                    # A discrete action got there first
                    continue

                record.break_time = session.break_time
                record.total_time_render = session.total_time_render
                if record.paused:
                    # The budget above is current as of now
                    record.pause_clock_at = now
                    session.pause_clock_at = now
                written.append(session)

            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Session flush failed, keeping last persisted values: %s", e)
            return 0

        with self._lock:
            for session in written:
                session.mark_persisted()

        logger.debug("Flushed %s sessions", len(written))
        return len(written)

    def live_break_time(self, record_id: int) -> Optional[int]:
        with self._lock:
            session = self._sessions.get(record_id)
            return session.break_time if session else None

    def snapshot(self, record_id: int, now: Optional[datetime] = None) -> Optional[Dict]:
        """Display view of a tracked session."""
        now = now or utcnow()
        with self._lock:
            session = self._sessions.get(record_id)
            if session is None:
                return None
            return {
                'record_id': session.record_id,
                'attendance_id': session.attendance_id,
                'subject_id': session.subject_id,
                'student_id': session.student_id,
                'state': session.state.value,
                'time_start': isoformat(session.time_start),
                'time_end': isoformat(session.time_end),
                'paused': session.paused,
                'break_time': session.break_time,
                'break_time_display': format_break_time(session.break_time),
                'total_time_render': session.total_time_render,
                'total_time_display': format_duration(session.total_time_render),
                'percentage': round(session.percentage(now), 2)
            }
