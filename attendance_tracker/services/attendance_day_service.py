"""Attendance day bookkeeping."""
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from attendance_tracker import db
from attendance_tracker.exceptions import AttendanceDayNotFound
from attendance_tracker.models import Attendance
from attendance_tracker.services.status_reconciler import prune_guards
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

class AttendanceDayService:
    """Service for the per-day Attendance rows."""

    @staticmethod
    def ensure_today(now: Optional[datetime] = None) -> Attendance:
        """Return today's Attendance row, creating it if missing."""
        today = (now or utcnow()).date()

        attendance = Attendance.query.filter_by(date=today).first()
        if attendance:
            return attendance

        try:
            attendance = Attendance(date=today)
            db.session.add(attendance)
            db.session.commit()
            logger.info("Created attendance day %s", today.isoformat())
            # Earlier days are no longer swept
            prune_guards(attendance.id)
            return attendance
        except IntegrityError:
            # Created concurrently by another worker
            db.session.rollback()
            attendance = Attendance.query.filter_by(date=today).first()
            if attendance:
                return attendance
            raise

    @staticmethod
    def get_day(attendance_id: int) -> Attendance:
        attendance = db.session.get(Attendance, attendance_id)
        if not attendance:
            raise AttendanceDayNotFound(f"Attendance {attendance_id} not found")
        return attendance

    @staticmethod
    def latest_day() -> Optional[Attendance]:
        """Most recent attendance day, if any."""
        return Attendance.query.order_by(Attendance.date.desc()).first()
