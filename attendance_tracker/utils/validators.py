"""Validation utilities for the application."""
from datetime import datetime, timezone
from typing import Dict, List, Any, Optional

class ValidationError(Exception):
    """Custom validation error."""
    pass

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []
        
        for field in required_fields:
            if field not in data or data[field] is None or data[field] == '':
                errors.append(f"{field} is required")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require_fields(data: Optional[Dict], required_fields: List[str]) -> Dict:
        """Raise ValidationError unless every required field is present."""
        if not isinstance(data, dict):
            raise ValidationError("Request body must be JSON")

        validation = Validator.validate_required_fields(data, required_fields)
        if not validation['is_valid']:
            raise ValidationError(', '.join(validation['errors']))
        return data

    @staticmethod
    def parse_int(value: Any, field: str) -> Optional[int]:
        """Parse an optional integer field."""
        if value is None or value == '':
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be an integer")

    @staticmethod
    def parse_percentage(value: Any, field: str = 'min_percentage') -> Optional[float]:
        """Parse an optional percentage between 0 and 100."""
        if value is None or value == '':
            return None
        try:
            percentage = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
        if percentage < 0 or percentage > 100:
            raise ValidationError(f"{field} must be between 0 and 100")
        return percentage

    @staticmethod
    def parse_datetime(value: Any, field: str) -> Optional[datetime]:
        """Parse an optional ISO datetime, normalised to naive UTC."""
        if value is None or value == '':
            return None
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(f"Invalid datetime format for {field}. Use ISO format")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
