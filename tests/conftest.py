"""Shared fixtures."""
from datetime import datetime, timedelta
import pytest
from attendance_tracker import create_app, db
from attendance_tracker.models import Student, Subject
from attendance_tracker.services.attendance_day_service import AttendanceDayService

# A Monday morning; every service call takes the clock explicitly
NOW = datetime(2026, 3, 2, 8, 30, 0)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def engine(app):
    return app.extensions['session_engine']

@pytest.fixture
def make_student(app):
    """Factory for students."""
    counter = {'n': 0}

    def _make(first_name=None, last_name=None, **kwargs):
        counter['n'] += 1
        student = Student(
            first_name=first_name or f"Student{counter['n']}",
            last_name=last_name or f"Family{counter['n']:02d}",
            **kwargs
        )
        return student.save()

    return _make

@pytest.fixture
def students(make_student):
    """Five enrolled students."""
    return [make_student() for _ in range(5)]

@pytest.fixture
def make_subject(app):
    """Factory for subjects. ``start`` of None makes a duration-only subject."""
    def _make(name='Mathematics', start=None, minutes=60, **kwargs):
        subject = Subject(
            name=name,
            start_time=start,
            end_time=start + timedelta(minutes=minutes) if start else None,
            duration=minutes,
            **kwargs
        )
        return subject.save()

    return _make

@pytest.fixture
def math(make_subject):
    """09:00 - 10:00."""
    return make_subject('Mathematics', start=datetime(2026, 3, 2, 9, 0), minutes=60, order=1)

@pytest.fixture
def physics(make_subject):
    """10:10 - 11:00."""
    return make_subject('Physics', start=datetime(2026, 3, 2, 10, 10), minutes=50, order=2)

@pytest.fixture
def attendance(app):
    return AttendanceDayService.ensure_today(NOW)
