"""Roster and time report queries."""
from datetime import datetime
from typing import Dict, List, Optional
from attendance_tracker import db
from attendance_tracker.exceptions import SubjectNotFound
from attendance_tracker.models import AttendanceRecord, Student, Subject
from attendance_tracker.services.attendance_day_service import AttendanceDayService
from attendance_tracker.services.session_engine import get_engine
from attendance_tracker.services.session_tracker import (
    consume_break, derive_state, elapsed_percentage, projected_render
)
from attendance_tracker.utils.helpers import (
    format_break_time, format_duration, isoformat, utcnow
)

def _get_subject(subject_id: int) -> Subject:
    subject = db.session.get(Subject, subject_id)
    if not subject:
        raise SubjectNotFound(f"Subject {subject_id} not found")
    return subject

def _records_by_student(attendance_id: int, subject_id: int) -> Dict[int, AttendanceRecord]:
    records = AttendanceRecord.query.filter_by(
        attendance_id=attendance_id,
        subject_id=subject_id
    ).all()
    return {record.student_id: record for record in records}

def live_values(record: AttendanceRecord, subject: Subject, now: datetime) -> Dict:
    """Projection of a record at ``now``, from the engine when it is tracked."""
    engine = get_engine()
    snapshot = engine.snapshot(record.id, now) if engine is not None else None
    if snapshot is not None:
        return {
            'state': snapshot['state'],
            'percentage': snapshot['percentage'],
            'total_time_render': snapshot['total_time_render'],
            'break_time': snapshot['break_time']
        }

    duration_seconds = subject.duration_seconds
    break_time = record.break_time
    if record.paused and record.time_end is None:
        break_time = consume_break(record.break_time, record.pause_clock_at, now)

    return {
        'state': derive_state(record.time_start, record.time_end, record.paused, break_time).value,
        'percentage': round(elapsed_percentage(record.time_start, record.time_end, now,
                                               subject.duration_minutes), 2),
        'total_time_render': projected_render(
            record.time_start, record.time_end, record.paused, record.break_time,
            record.total_time_render, record.pause_clock_at, now, duration_seconds
        ),
        'break_time': break_time
    }

class RosterService:
    """Read-side views over students and their records."""

    @staticmethod
    def roster(attendance_id: int, subject_id: int, now: Optional[datetime] = None) -> List[Dict]:
        """Every student joined with their record for the pair, if any."""
        now = now or utcnow()
        AttendanceDayService.get_day(attendance_id)
        subject = _get_subject(subject_id)
        records = _records_by_student(attendance_id, subject_id)

        rows = []
        students = Student.query.order_by(Student.last_name, Student.first_name).all()
        for student in students:
            row = student.to_dict()
            record = records.get(student.id)
            if record is None:
                row['record'] = None
                rows.append(row)
                continue

            live = live_values(record, subject, now)
            row['record'] = {
                'id': record.id,
                'status': record.status.value,
                'time_start': isoformat(record.time_start),
                'time_end': isoformat(record.time_end),
                'paused': record.paused,
                'state': live['state'],
                'percentage': live['percentage'],
                'total_time_render': live['total_time_render'],
                'total_time_display': format_duration(live['total_time_render']),
                'break_time': live['break_time'],
                'break_time_display': format_break_time(live['break_time']),
                'persisted_total_time_render': record.total_time_render,
                'persisted_break_time': record.break_time
            }
            rows.append(row)

        return rows

    @staticmethod
    def attendance_time(attendance_id: int, subject_id: int,
                        now: Optional[datetime] = None) -> List[Dict]:
        """Tracked time per record, ordered by student name."""
        now = now or utcnow()
        AttendanceDayService.get_day(attendance_id)
        subject = _get_subject(subject_id)

        records = AttendanceRecord.query.join(Student).filter(
            AttendanceRecord.attendance_id == attendance_id,
            AttendanceRecord.subject_id == subject_id
        ).order_by(Student.last_name, Student.first_name).all()

        report = []
        for record in records:
            live = live_values(record, subject, now)
            report.append({
                'record_id': record.id,
                'student_id': record.student_id,
                'student_name': record.student.full_name,
                'status': record.status.value,
                'total_seconds': live['total_time_render'],
                'duration': format_duration(live['total_time_render']),
                'break_time': live['break_time'],
                'break_time_display': format_break_time(live['break_time'])
            })
        return report
