"""Student directory model."""
from attendance_tracker import db
from attendance_tracker.models.base import BaseModel

class Student(BaseModel):
    """Student identity, read-only from the tracker's point of view."""
    
    __tablename__ = 'students'
    
    first_name = db.Column(db.String(100), nullable=False)
    middle_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=False)
    
    # Biometric reference (face image key in the external store)
    image = db.Column(db.String(500), nullable=True)
    
    # Relationships
    attendance_records = db.relationship('AttendanceRecord', backref='student', lazy='dynamic')
    
    @property
    def full_name(self) -> str:
        """First, middle and last name."""
        parts = [self.first_name, self.middle_name, self.last_name]
        return ' '.join(part for part in parts if part)
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'first_name': self.first_name,
            'middle_name': self.middle_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'image': self.image
        }
    
    def __repr__(self):
        return f'<Student {self.full_name}>'
