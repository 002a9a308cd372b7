"""Attendance record model with time tracking and break state."""
import enum
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

DEFAULT_BREAK_SECONDS = 600

class AttendanceStatus(enum.Enum):
    """Attendance status enumeration."""
    PRESENT = 'PRESENT'
    ABSENT = 'ABSENT'
    LATE = 'LATE'
    EXCUSED = 'EXCUSED'

    @classmethod
    def parse(cls, value) -> 'AttendanceStatus':
        """Accept an enum member or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            allowed = ', '.join(member.value for member in cls)
            raise ValueError(f"Invalid status '{value}'. Expected one of: {allowed}")

# Statuses whose time tracking carries over to the next subject
ATTENDED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)

class AttendanceRecord(BaseModel):
    """Per-student, per-subject, per-day attendance entry."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('attendance_id', 'student_id', 'subject_id',
                            name='uq_attendance_record_key'),
    )
    
    attendance_id = db.Column(db.Integer, db.ForeignKey('attendances.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False, index=True)
    
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.ABSENT)
    
    # Time tracking
    time_start = db.Column(db.DateTime, nullable=True)
    time_end = db.Column(db.DateTime, nullable=True)
    total_time_render = db.Column(db.Integer, nullable=False, default=0)  # seconds
    
    # Break state
    break_time = db.Column(db.Integer, nullable=False, default=DEFAULT_BREAK_SECONDS)  # seconds
    paused = db.Column(db.Boolean, nullable=False, default=False)
    pause_clock_at = db.Column(db.DateTime, nullable=True)  # when break_time was last accurate
    
    @property
    def key(self):
        return (self.attendance_id, self.student_id, self.subject_id)
    
    def to_dict(self):
        """Convert to dictionary."""
        data = super().to_dict()
        data['status'] = self.status.value if self.status else None
        return data
    
    def __repr__(self):
        return f'<AttendanceRecord {self.attendance_id}-{self.student_id}-{self.subject_id}>'
