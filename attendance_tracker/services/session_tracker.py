"""Elapsed-time and break-budget tracking for attendance sessions.

Everything here is a pure function of a session's timeline and an explicit
``now``; nothing touches the database. The session engine and the services
share these rules so that the display counter, the durable snapshot and the
status reconciler always agree.

Break model: while a student is on break with budget left, the budget drains
one second per tick and render time keeps accruing. Once the budget reaches
zero, render time freezes until the break is explicitly resumed, even though
the record stays ``paused``.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

DEFAULT_BREAK_SECONDS = 600

class SessionState(Enum):
    """Session state enumeration."""
    NOT_STARTED = 'not_started'
    ACTIVE = 'active'
    ON_BREAK = 'on_break'
    BREAK_EXHAUSTED = 'break_exhausted'  # still paused, render time frozen
    ENDED = 'ended'

def derive_state(time_start: Optional[datetime], time_end: Optional[datetime],
                 paused: bool, break_time: int) -> SessionState:
    """Map stored record fields onto the session state machine."""
    if time_start is None:
        return SessionState.NOT_STARTED
    if time_end is not None:
        return SessionState.ENDED
    if paused:
        return SessionState.ON_BREAK if (break_time or 0) > 0 else SessionState.BREAK_EXHAUSTED
    return SessionState.ACTIVE

def session_limit(time_start: datetime, duration_seconds: Optional[int]) -> Optional[datetime]:
    """Latest instant that can count toward the session."""
    if time_start is None or not duration_seconds:
        return None
    return time_start + timedelta(seconds=duration_seconds)

def render_seconds(time_start: Optional[datetime], now: datetime,
                   duration_seconds: Optional[int]) -> int:
    """Seconds from start to now, capped at the scheduled duration."""
    if time_start is None:
        return 0
    limit = session_limit(time_start, duration_seconds)
    end = min(now, limit) if limit else now
    return max(0, int((end - time_start).total_seconds()))

def elapsed_minutes(time_start: Optional[datetime], time_end: Optional[datetime],
                    now: datetime, duration_minutes: Optional[int]) -> int:
    """Whole minutes between start and end (or now), capped at the duration."""
    if time_start is None:
        return 0
    duration_seconds = duration_minutes * 60 if duration_minutes else None
    return render_seconds(time_start, time_end or now, duration_seconds) // 60

def elapsed_percentage(time_start: Optional[datetime], time_end: Optional[datetime],
                       now: datetime, duration_minutes: Optional[int]) -> float:
    """Elapsed whole minutes as a percentage of the subject duration, capped at 100."""
    if time_start is None or not duration_minutes or duration_minutes <= 0:
        return 0.0
    minutes = elapsed_minutes(time_start, time_end, now, duration_minutes)
    return min(100.0, minutes / duration_minutes * 100)

def consume_break(break_time: int, pause_clock_at: Optional[datetime], now: datetime) -> int:
    """Remaining budget after the pause clock ran from ``pause_clock_at`` to ``now``."""
    remaining = max(0, int(break_time or 0))
    if pause_clock_at is None or now <= pause_clock_at:
        return remaining
    used = int(math.floor((now - pause_clock_at).total_seconds()))
    return max(0, remaining - used)

@dataclass
class LiveSession:
    """In-memory view of one attendance record, advanced on every tick."""
    record_id: int
    attendance_id: int
    subject_id: int
    student_id: int
    time_start: Optional[datetime]
    time_end: Optional[datetime]
    paused: bool
    break_time: int
    total_time_render: int
    duration_seconds: Optional[int]
    pause_clock_at: Optional[datetime] = None

    # Last-known-good durable values
    persisted_break_time: int = DEFAULT_BREAK_SECONDS
    persisted_total_time_render: int = 0

    last_percentage: float = 0.0

    @property
    def state(self) -> SessionState:
        return derive_state(self.time_start, self.time_end, self.paused, self.break_time)

    @property
    def duration_minutes(self) -> Optional[int]:
        return self.duration_seconds // 60 if self.duration_seconds else None

    @property
    def dirty(self) -> bool:
        """True when the in-memory counters moved past the persisted snapshot."""
        return (self.break_time != self.persisted_break_time
                or self.total_time_render != self.persisted_total_time_render)

    def percentage(self, now: datetime) -> float:
        return elapsed_percentage(self.time_start, self.time_end, now, self.duration_minutes)

    def mark_persisted(self) -> None:
        self.persisted_break_time = self.break_time
        self.persisted_total_time_render = self.total_time_render

def advance(session: LiveSession, now: datetime, step: int = 1) -> SessionState:
    """Advance one tick. Returns the state after the tick."""
    state = session.state
    if state in (SessionState.NOT_STARTED, SessionState.ENDED):
        return state

    if state == SessionState.ON_BREAK:
        # Break time still counts toward attendance while budget remains
        session.break_time = max(0, session.break_time - step)
        session.total_time_render = render_seconds(session.time_start, now, session.duration_seconds)
    elif state == SessionState.ACTIVE:
        session.total_time_render = render_seconds(session.time_start, now, session.duration_seconds)
    # BREAK_EXHAUSTED: render time stays frozen until resume

    return session.state

def projected_render(time_start: Optional[datetime], time_end: Optional[datetime],
                     paused: bool, break_time: int, total_time_render: int,
                     pause_clock_at: Optional[datetime], now: datetime,
                     duration_seconds: Optional[int]) -> int:
    """Render time a record would show at ``now`` without an engine tracking it."""
    state = derive_state(time_start, time_end, paused, break_time)
    if state == SessionState.NOT_STARTED:
        return 0
    if state == SessionState.ENDED:
        if total_time_render:
            return total_time_render
        return render_seconds(time_start, time_end, duration_seconds)
    if state == SessionState.BREAK_EXHAUSTED:
        return total_time_render or 0
    if state == SessionState.ON_BREAK and pause_clock_at is not None:
        remaining = consume_break(break_time, pause_clock_at, now)
        if remaining == 0:
            # Budget ran out somewhere between the last sync and now
            exhausted_at = pause_clock_at + timedelta(seconds=break_time)
            return render_seconds(time_start, exhausted_at, duration_seconds)
    return render_seconds(time_start, now, duration_seconds)
