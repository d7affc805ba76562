from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from valta.clock import Clock, utc_now
from valta.models.activity import Activity, ActivityStatus

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR


@dataclass
class ActivityTimeCalculator:
    """Time metrics for one activity, relative to an injectable clock."""

    created_at: datetime
    deadline: datetime
    status: ActivityStatus
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    now: Clock = field(default=utc_now, repr=False)

    @classmethod
    def from_activity(
        cls, activity: Activity, now: Clock = utc_now
    ) -> "ActivityTimeCalculator":
        return cls(
            created_at=activity.created_at,
            deadline=activity.deadline,
            status=activity.status,
            started_at=activity.started_at,
            completed_at=activity.completed_at,
            now=now,
        )

    # Remaining time

    @property
    def time_remaining_interval(self) -> timedelta:
        """Time left until the deadline; negative once it has passed."""
        return self.deadline - self.now()

    @property
    def time_remaining(self) -> str:
        remaining = self.time_remaining_interval.total_seconds()
        if remaining < 0:
            return f"Overdue by {_largest_unit(abs(remaining))}"
        return f"{_largest_unit(remaining)} left"

    @property
    def is_overdue(self) -> bool:
        return self.deadline < self.now() and not self.status.is_terminal

    # Progress

    @property
    def progress_start_date(self) -> datetime:
        return self.started_at or self.created_at

    @property
    def time_progress(self) -> float:
        total = (self.deadline - self.progress_start_date).total_seconds()
        if total <= 0:
            return 1.0

        elapsed = (self.now() - self.progress_start_date).total_seconds()
        return min(max(elapsed / total, 0.0), 1.0)

    @property
    def time_remaining_progress(self) -> float:
        return max(1.0 - self.time_progress, 0.0)

    # Completion

    @property
    def completion_delta(self) -> Optional[timedelta]:
        """Positive when finished before the deadline, negative when late."""
        if self.completed_at is None:
            return None
        return self.deadline - self.completed_at

    @property
    def completion_delta_formatted(self) -> Optional[str]:
        delta = self.completion_delta
        if delta is None:
            return None

        seconds = delta.total_seconds()
        days, hours, minutes = _split(abs(seconds))
        sign = "-" if seconds >= 0 else "+"
        return f"{sign}{days}d {hours}h {minutes}m"

    # Durations

    @property
    def total_duration_from_creation(self) -> timedelta:
        return self.deadline - self.created_at

    @property
    def total_duration_from_start(self) -> timedelta:
        return self.deadline - self.progress_start_date

    @property
    def active_duration(self) -> Optional[timedelta]:
        if self.started_at is None:
            return None
        return (self.completed_at or self.now()) - self.started_at

    @property
    def current_status_duration(self) -> timedelta:
        now = self.now()

        if self.status == ActivityStatus.TEAM_MEMBER_PENDING:
            return now - self.created_at

        if self.status in (ActivityStatus.RUNNING, ActivityStatus.MANAGER_PENDING):
            return now - (self.started_at or self.created_at)

        if self.started_at is None:
            return timedelta(0)
        if self.completed_at is None:
            return now - self.started_at
        return self.completed_at - self.started_at

    @property
    def current_status_duration_formatted(self) -> str:
        days, hours, minutes = _split(abs(self.current_status_duration.total_seconds()))
        if days > 0:
            return f"{days}d {hours}h"
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"


def _split(seconds: float):
    days = int(seconds // DAY)
    hours = int((seconds % DAY) // HOUR)
    minutes = int((seconds % HOUR) // MINUTE)
    return days, hours, minutes


def _largest_unit(seconds: float) -> str:
    if seconds < HOUR:
        return f"{int(seconds // MINUTE)}m"
    if seconds < DAY:
        return f"{int(seconds // HOUR)}h"
    return f"{int(seconds // DAY)}d"
