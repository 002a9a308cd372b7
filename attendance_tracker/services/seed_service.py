"""Database seeding service for demo data."""
import logging
from datetime import datetime, timedelta
from typing import Optional
from attendance_tracker import db
from attendance_tracker.models import Student, Subject
from attendance_tracker.utils.helpers import utcnow

logger = logging.getLogger(__name__)

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all(now: Optional[datetime] = None):
        """Seed all demo data."""
        SeedService.seed_students()
        SeedService.seed_subjects(now)

    @staticmethod
    def seed_students():
        """Seed demo students."""
        students_data = [
            ('Amina', None, 'Haddad'),
            ('Bruno', 'Luis', 'Costa'),
            ('Chen', None, 'Wei'),
            ('Dana', 'Marie', 'Okafor'),
            ('Elias', None, 'Novak'),
            ('Farah', None, 'Rahman'),
        ]

        created = 0
        for first_name, middle_name, last_name in students_data:
            exists = Student.query.filter_by(first_name=first_name, last_name=last_name).first()
            if exists:
                continue
            db.session.add(Student(
                first_name=first_name,
                middle_name=middle_name,
                last_name=last_name,
                image=f"faces/{first_name.lower()}-{last_name.lower()}.jpg"
            ))
            created += 1

        db.session.commit()
        logger.info("Created %s students", created)

    @staticmethod
    def seed_subjects(now: Optional[datetime] = None):
        """Seed today's timetable, starting at 08:00."""
        day_start = (now or utcnow()).replace(hour=8, minute=0, second=0, microsecond=0)
        subjects_data = [
            ('Mathematics', 'Mr. Alvarez', 60),
            ('Physics', 'Ms. Brennan', 45),
            ('Literature', 'Mr. Dubois', 50),
            ('History', 'Ms. Ito', 45),
        ]

        created = 0
        start = day_start
        for order, (name, teacher_name, minutes) in enumerate(subjects_data, start=1):
            end = start + timedelta(minutes=minutes)
            if not Subject.query.filter_by(name=name).first():
                db.session.add(Subject(
                    name=name,
                    teacher_name=teacher_name,
                    start_time=start,
                    end_time=end,
                    duration=minutes,
                    order=order,
                    active=False
                ))
                created += 1
            # Ten minute changeover between periods
            start = end + timedelta(minutes=10)

        db.session.commit()
        logger.info("Created %s subjects", created)
