"""Tests for status auto-adjustment."""
from datetime import datetime, timedelta
import pytest
from attendance_tracker import db
from attendance_tracker.exceptions import DurationUnavailable, SubjectNotFound
from attendance_tracker.models import AttendanceStatus
from attendance_tracker.services import status_reconciler
from attendance_tracker.services.attendance_day_service import AttendanceDayService
from attendance_tracker.services.session_service import upsert_record
from attendance_tracker.services.status_reconciler import (
    StatusReconciler, decide_status, sweep_guard
)

T0 = datetime(2026, 3, 2, 9, 0)

def at(minutes=0):
    return T0 + timedelta(minutes=minutes)

def started(attendance, student, subject, minutes=0, **fields):
    record, _ = upsert_record(attendance.id, student.id, subject.id,
                              time_start=at(minutes), **fields)
    db.session.commit()
    return record

def test_decide_status():
    assert decide_status(at(), None, at(45), 60, at(), 75) == AttendanceStatus.PRESENT
    assert decide_status(at(), None, at(44), 60, at(), 75) == AttendanceStatus.ABSENT
    assert decide_status(at(5), None, at(60), 60, at(), 75) == AttendanceStatus.LATE
    # Without a scheduled start nobody is late
    assert decide_status(at(5), None, at(60), 60, None, 75) == AttendanceStatus.PRESENT

def test_forty_five_of_sixty_minutes_is_present(students, math, attendance):
    record = started(attendance, students[0], math)

    result = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(45))

    assert result.checked == 1
    assert result.updated == [record.id]
    assert record.status == AttendanceStatus.PRESENT

def test_late_and_absent(students, math, attendance):
    late = started(attendance, students[0], math, minutes=5)
    absent = started(attendance, students[1], math, minutes=30)

    StatusReconciler.auto_adjust(attendance.id, math.id, now=at(60))

    assert late.status == AttendanceStatus.LATE
    assert absent.status == AttendanceStatus.ABSENT

def test_unstarted_records_are_not_checked(students, math, attendance):
    upsert_record(attendance.id, students[0].id, math.id)
    db.session.commit()

    result = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(60))
    assert result.checked == 0

def test_auto_adjust_is_idempotent(students, math, attendance):
    for student in students[:3]:
        started(attendance, student, math)

    first = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(50))
    second = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(50))

    assert len(first.updated) == 3
    assert second.updated == []

def test_excused_is_left_alone(students, math, attendance):
    record = started(attendance, students[0], math, status=AttendanceStatus.EXCUSED)

    result = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(5))

    assert result.updated == []
    assert record.status == AttendanceStatus.EXCUSED

def test_explicit_start_time_and_threshold(students, math, attendance):
    record = started(attendance, students[0], math, minutes=5)

    # Scheduled start moved to 09:10, threshold lowered to 50%
    StatusReconciler.auto_adjust(attendance.id, math.id, subject_start_time=at(10),
                                 min_percentage=50, now=at(40))

    assert record.status == AttendanceStatus.PRESENT

def test_missing_subject_or_duration(make_subject, attendance):
    with pytest.raises(SubjectNotFound):
        StatusReconciler.auto_adjust(attendance.id, 999, now=at())

    unscheduled = make_subject('Assembly', start=None, minutes=None)
    with pytest.raises(DurationUnavailable):
        StatusReconciler.auto_adjust(attendance.id, unscheduled.id, now=at())

def test_concurrent_sweep_is_skipped(students, math, attendance):
    started(attendance, students[0], math)

    with sweep_guard(attendance.id, math.id):
        result = StatusReconciler.auto_adjust(attendance.id, math.id, now=at(50))

    assert result.skipped is True
    assert result.updated == []

def test_sweep_active_without_active_subject(app):
    assert StatusReconciler.sweep_active(now=at()) is None

def test_new_day_drops_guards_of_earlier_days(students, math, attendance):
    with sweep_guard(attendance.id, math.id):
        pass
    assert (attendance.id, math.id) in status_reconciler._guards

    tomorrow = AttendanceDayService.ensure_today(at() + timedelta(days=1))

    assert (attendance.id, math.id) not in status_reconciler._guards
    with sweep_guard(tomorrow.id, math.id):
        pass
    assert (tomorrow.id, math.id) in status_reconciler._guards
