"""Attendance day model."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

class Attendance(BaseModel):
    """One calendar day of attendance."""
    
    __tablename__ = 'attendances'
    
    date = db.Column(db.Date, unique=True, nullable=False, index=True)
    
    # Relationships
    records = db.relationship('AttendanceRecord', backref='attendance', lazy='dynamic')
    
    def __repr__(self):
        return f'<Attendance {self.date}>'
