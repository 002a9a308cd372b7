"""Domain errors raised by the attendance services."""


class AttendanceError(Exception):
    """Base class for attendance errors surfaced to callers."""

    status_code = 400

    def __init__(self, message: str = None, status_code: int = None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class RecordNotFound(AttendanceError):
    """Attendance record not found."""
    status_code = 404


class StudentNotFound(AttendanceError):
    """Student not found."""
    status_code = 404


class SubjectNotFound(AttendanceError):
    """Subject not found."""
    status_code = 404


class AttendanceDayNotFound(AttendanceError):
    """Attendance day not found."""
    status_code = 404


class StandbyEntryNotFound(AttendanceError):
    """Standby entry not found."""
    status_code = 404


class RecordNotStarted(AttendanceError):
    """Time tracking has not been started for this record."""
    status_code = 409


class RecordAlreadyStarted(AttendanceError):
    """Time tracking has already been started for this record."""
    status_code = 409


class SessionEnded(AttendanceError):
    """Time tracking has already ended for this record."""
    status_code = 409


class BreakPreconditionViolation(AttendanceError):
    """Break cannot be changed in the current state."""
    status_code = 409


class DurationUnavailable(AttendanceError):
    """Subject has no schedule or duration to measure against."""
    status_code = 422


class NoActiveSubject(AttendanceError):
    """No subject is currently active."""
    status_code = 409


class StandbyClosed(AttendanceError):
    """Standby admission is closed while a subject is active."""
    status_code = 409


class TransitionInProgress(AttendanceError):
    """A subject transition is already running."""
    status_code = 423


class SweepInProgress(AttendanceError):
    """A status sweep for this subject is still running."""
    status_code = 423
