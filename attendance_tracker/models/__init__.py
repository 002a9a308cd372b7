"""Models package with all models."""
from .base import BaseModel
from .attendance import Attendance
from .student import Student
from .subject import Subject
from .attendance_record import AttendanceRecord, AttendanceStatus, ATTENDED_STATUSES
from .standby import StandbyStudent

__all__ = [
    'BaseModel', 'Attendance', 'Student', 'Subject',
    'AttendanceRecord', 'AttendanceStatus', 'ATTENDED_STATUSES',
    'StandbyStudent'
]
