"""Subject model for schedulable class periods."""
from datetime import datetime
from typing import Optional
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

class Subject(BaseModel):
    """A scheduled class period. At most one subject is active at a time."""
    
    __tablename__ = 'subjects'
    __table_args__ = (
        # Storage-level singleton: only one row may hold active = true
        db.Index(
            'uq_subjects_single_active', 'active',
            unique=True,
            sqlite_where=db.text('active = 1'),
            postgresql_where=db.text('active'),
        ),
    )
    
    name = db.Column(db.String(255), nullable=False)
    teacher_name = db.Column(db.String(255), nullable=True)
    
    # Schedule: either a start/end pair or a duration in minutes
    start_time = db.Column(db.DateTime, nullable=True)
    end_time = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=True)
    
    order = db.Column(db.Integer, nullable=True)
    active = db.Column(db.Boolean, default=False, nullable=False)
    
    # Relationships
    records = db.relationship('AttendanceRecord', backref='subject', lazy='dynamic')
    
    @property
    def duration_minutes(self) -> Optional[int]:
        """Scheduled length in whole minutes, or None when unknown."""
        if self.start_time and self.end_time:
            minutes = int((self.end_time - self.start_time).total_seconds() // 60)
            return minutes if minutes > 0 else None
        if self.duration and self.duration > 0:
            return self.duration
        return None
    
    @property
    def duration_seconds(self) -> Optional[int]:
        minutes = self.duration_minutes
        return minutes * 60 if minutes else None
    
    def scheduled_start_or(self, fallback: datetime) -> datetime:
        """Scheduled start, or the fallback for duration-only subjects."""
        return self.start_time or fallback
    
    def scheduled_end_or(self, fallback: datetime) -> datetime:
        """Scheduled end, or the fallback for subjects without one."""
        return self.end_time or fallback
    
    def to_dict(self):
        """Convert to dictionary."""
        data = super().to_dict(exclude=['created_at', 'updated_at'])
        data['duration_minutes'] = self.duration_minutes
        return data
    
    def __repr__(self):
        return f'<Subject {self.name}>'
