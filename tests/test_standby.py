"""Tests for standby admission and detection routing."""
from datetime import datetime
import pytest
from attendance_tracker.exceptions import StandbyClosed, StandbyEntryNotFound, StudentNotFound
from attendance_tracker.models import AttendanceStatus, StandbyStudent
from attendance_tracker.services.detection_service import DetectionService
from attendance_tracker.services.standby_service import StandbyService
from attendance_tracker.services.subject_transition import SubjectTransitionCoordinator

NOW = datetime(2026, 3, 2, 8, 30)

def test_admit_defaults_to_present(students):
    entry = StandbyService.admit(students[0].id, detected_at=NOW)

    assert entry.status == AttendanceStatus.PRESENT
    assert entry.detected_at == NOW

def test_readmission_returns_existing_entry(students):
    first = StandbyService.admit(students[0].id, detected_at=NOW)
    second = StandbyService.admit(students[0].id, detected_at=datetime(2026, 3, 2, 8, 45))

    assert second.id == first.id
    assert StandbyStudent.query.count() == 1

def test_admit_unknown_student(app):
    with pytest.raises(StudentNotFound):
        StandbyService.admit(999)

def test_admit_rejected_while_subject_active(students, math):
    SubjectTransitionCoordinator.activate(math.id, now=NOW)
    with pytest.raises(StandbyClosed):
        StandbyService.admit(students[0].id, detected_at=NOW)

def test_entries_are_ordered_by_detection(students):
    StandbyService.admit(students[0].id, detected_at=datetime(2026, 3, 2, 8, 50))
    StandbyService.admit(students[1].id, detected_at=datetime(2026, 3, 2, 8, 20))

    assert [e.student_id for e in StandbyService.list_entries()] == [students[1].id, students[0].id]

def test_update_and_remove(students):
    entry = StandbyService.admit(students[0].id, detected_at=NOW)

    StandbyService.update_status(entry.id, 'EXCUSED')
    assert StandbyService.get_entry(entry.id).status == AttendanceStatus.EXCUSED

    StandbyService.remove(entry.id)
    with pytest.raises(StandbyEntryNotFound):
        StandbyService.get_entry(entry.id)

def test_detection_without_active_subject_goes_to_standby(students):
    result = DetectionService.handle_detection(students[0].id, now=NOW)

    assert result['outcome'] == 'standby'
    assert result['standby']['student_id'] == students[0].id

def test_detection_with_active_subject_starts_session(students, math):
    SubjectTransitionCoordinator.activate(math.id, now=NOW)

    started = DetectionService.handle_detection(students[0].id, now=datetime(2026, 3, 2, 9, 2))
    again = DetectionService.handle_detection(students[0].id, now=datetime(2026, 3, 2, 9, 7))

    assert started['outcome'] == 'started'
    assert started['record']['time_start'] == '2026-03-02T09:02:00'
    assert again['outcome'] == 'already_started'
    assert again['record']['id'] == started['record']['id']
