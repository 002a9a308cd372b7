"""Tests for formatting and validation helpers."""
from datetime import datetime
import pytest
from attendance_tracker.utils.helpers import format_break_time, format_duration
from attendance_tracker.utils.validators import ValidationError, Validator

def test_format_duration():
    assert format_duration(0) == '00:00:00'
    assert format_duration(3725) == '01:02:05'
    assert format_duration(None) == '00:00:00'

def test_format_break_time():
    assert format_break_time(600) == '10:00'
    assert format_break_time(59) == '00:59'
    assert format_break_time(None) == '10:00'
    assert format_break_time(-3) == '00:00'

def test_parse_datetime_normalises_to_utc():
    assert Validator.parse_datetime('2026-03-02T11:00:00+02:00', 'start') == datetime(2026, 3, 2, 9, 0)
    assert Validator.parse_datetime('2026-03-02T09:00:00Z', 'start') == datetime(2026, 3, 2, 9, 0)
    assert Validator.parse_datetime(None, 'start') is None

    with pytest.raises(ValidationError):
        Validator.parse_datetime('yesterday', 'start')

def test_parse_percentage_bounds():
    assert Validator.parse_percentage('75') == 75.0
    with pytest.raises(ValidationError):
        Validator.parse_percentage(101)
    with pytest.raises(ValidationError):
        Validator.parse_percentage('lots')

def test_require_fields():
    with pytest.raises(ValidationError):
        Validator.require_fields(None, ['student_id'])
    with pytest.raises(ValidationError):
        Validator.require_fields({'student_id': ''}, ['student_id'])
    assert Validator.require_fields({'student_id': 4}, ['student_id']) == {'student_id': 4}
