"""Detection events from the external recognizer."""
import logging
from datetime import datetime
from typing import Dict, Optional
from attendance_tracker import db
from attendance_tracker.exceptions import StudentNotFound
from attendance_tracker.models import AttendanceRecord, Student, Subject
from attendance_tracker.services.attendance_day_service import AttendanceDayService
from attendance_tracker.services.session_service import SessionService
from attendance_tracker.services.standby_service import StandbyService
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

class DetectionService:
    """Routes a recognized student to standby or to a session start."""

    @staticmethod
    def handle_detection(student_id: int, now: Optional[datetime] = None) -> Dict:
        now = now or utcnow()
        if not db.session.get(Student, student_id):
            raise StudentNotFound(f"Student {student_id} not found")

        subject = Subject.query.filter_by(active=True).first()
        if not subject:
            entry = StandbyService.admit(student_id, detected_at=now)
            return {'outcome': 'standby', 'standby': entry.to_dict()}

        attendance = AttendanceDayService.ensure_today(now)
        record = AttendanceRecord.query.filter_by(
            attendance_id=attendance.id,
            student_id=student_id,
            subject_id=subject.id
        ).first()

        if record and record.time_start is not None:
            logger.debug("Student %s already tracked (record %s)", student_id, record.id)
            return {'outcome': 'already_started', 'record': record.to_dict()}

        record = SessionService.start_for_student(
            student_id, attendance_id=attendance.id, subject_id=subject.id, now=now
        )
        logger.info("Detection started session for student %s in subject %s", student_id, subject.id)
        return {'outcome': 'started', 'record': record.to_dict()}
