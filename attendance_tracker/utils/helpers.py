"""Helper functions for the application."""
from datetime import datetime, timezone
from flask import jsonify
from typing import Any, Optional

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    message = getattr(error, 'description', None) or str(error)
    return jsonify({
        'error': True,
        'message': message,
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }
    
    if data is not None:
        response['data'] = data
    
    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400):
    """Return consistent error response."""
    return jsonify({
        'error': True,
        'message': message,
        'status_code': status_code
    }), status_code

def utcnow() -> datetime:
    """Naive UTC wall clock, matching what the models store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Serialize an optional datetime."""
    return value.isoformat() if value else None

def format_duration(total_seconds: int) -> str:
    """Format seconds as HH:MM:SS."""
    total_seconds = max(0, int(total_seconds or 0))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

def format_break_time(seconds: Optional[int]) -> str:
    """Format a remaining break budget as MM:SS."""
    if seconds is None:
        return "10:00"
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"

def exception_response(error: Exception, action: str):
    """Roll back and map a service exception onto an error response."""
    from attendance_tracker import db
    from attendance_tracker.exceptions import AttendanceError
    from attendance_tracker.utils.validators import ValidationError

    db.session.rollback()
    if isinstance(error, AttendanceError):
        return error_response(error.message, error.status_code)
    if isinstance(error, (ValidationError, ValueError)):
        return error_response(str(error), 400)
    return error_response(f"Error {action}: {str(error)}", 500)
