"""Standby admission queue model."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel
from attendance_tracker.models.attendance_record import AttendanceStatus

class StandbyStudent(BaseModel):
    """A detected student waiting for the next subject activation."""
    
    __tablename__ = 'standby_students'
    
    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, unique=True)
    detected_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    
    # Relationships
    student = db.relationship('Student', backref=db.backref('standby_entry', uselist=False))
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student': self.student.to_dict() if self.student else None,
            'detected_at': self.detected_at.isoformat() if self.detected_at else None,
            'status': self.status.value if self.status else None
        }
