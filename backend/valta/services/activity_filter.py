from datetime import datetime
from typing import Dict, List
from uuid import UUID

from valta.clock import Clock, utc_now
from valta.models.activity import (
    Activity,
    ActivityOutcome,
    ActivityPriority,
    ActivityStatus,
)
from valta.services.time_service import ActivityTimeCalculator

PENDING = (ActivityStatus.MANAGER_PENDING, ActivityStatus.TEAM_MEMBER_PENDING)
ACTIVE = (
    ActivityStatus.RUNNING,
    ActivityStatus.TEAM_MEMBER_PENDING,
    ActivityStatus.MANAGER_PENDING,
)


class ActivityFilter:
    """Read-only queries over a list of activities."""

    def __init__(self, activities: List[Activity], now: Clock = utc_now):
        self.activities = list(activities)
        self.now = now

    def _derive(self, activities: List[Activity]) -> "ActivityFilter":
        return ActivityFilter(activities, now=self.now)

    # Status

    def by_status(self, status: ActivityStatus) -> List[Activity]:
        return [a for a in self.activities if a.status == status]

    @property
    def running(self) -> List[Activity]:
        return self.by_status(ActivityStatus.RUNNING)

    @property
    def completed(self) -> List[Activity]:
        return self.by_status(ActivityStatus.COMPLETED)

    @property
    def canceled(self) -> List[Activity]:
        return self.by_status(ActivityStatus.CANCELED)

    @property
    def manager_pending(self) -> List[Activity]:
        return self.by_status(ActivityStatus.MANAGER_PENDING)

    @property
    def team_member_pending(self) -> List[Activity]:
        return self.by_status(ActivityStatus.TEAM_MEMBER_PENDING)

    @property
    def all_pending(self) -> List[Activity]:
        return [a for a in self.activities if a.status in PENDING]

    @property
    def active(self) -> List[Activity]:
        return [a for a in self.activities if a.status in ACTIVE]

    # Outcome (completed work only)

    def by_outcome(self, outcome: ActivityOutcome) -> List[Activity]:
        return [a for a in self.activities if a.outcome == outcome]

    @property
    def completed_ahead(self) -> List[Activity]:
        return [a for a in self.completed if a.outcome == ActivityOutcome.AHEAD]

    @property
    def completed_jit(self) -> List[Activity]:
        return [a for a in self.completed if a.outcome == ActivityOutcome.JIT]

    @property
    def completed_overrun(self) -> List[Activity]:
        return [a for a in self.completed if a.outcome == ActivityOutcome.OVERRUN]

    # Priority / member

    def by_priority(self, priority: ActivityPriority) -> List[Activity]:
        return [a for a in self.activities if a.priority == priority]

    def assigned_to(self, member_id: UUID) -> "ActivityFilter":
        return self._derive(
            [a for a in self.activities if a.assigned_member_id == member_id]
        )

    # Time

    @property
    def overdue(self) -> List[Activity]:
        return [
            a
            for a in self.activities
            if ActivityTimeCalculator.from_activity(a, now=self.now).is_overdue
        ]

    def due_before(self, date: datetime) -> List[Activity]:
        return [a for a in self.activities if a.deadline < date]

    def due_after(self, date: datetime) -> List[Activity]:
        return [a for a in self.activities if a.deadline > date]

    def created_between(self, start: datetime, end: datetime) -> List[Activity]:
        return [a for a in self.activities if start <= a.created_at <= end]

    # Search / sort

    def search(self, query: str) -> List[Activity]:
        if not query:
            return list(self.activities)

        needle = query.casefold()
        return [
            a
            for a in self.activities
            if needle in a.name.casefold()
            or needle in a.description.casefold()
            or needle in a.assigned_member.name.casefold()
        ]

    def sorted_by_deadline(self, ascending: bool = True) -> List[Activity]:
        return sorted(self.activities, key=lambda a: a.deadline, reverse=not ascending)

    def sorted_by_priority(self) -> List[Activity]:
        return sorted(self.activities, key=lambda a: a.priority)

    def sorted_by_created_at(self, ascending: bool = False) -> List[Activity]:
        return sorted(
            self.activities, key=lambda a: a.created_at, reverse=not ascending
        )


def _rate(part: int, whole: int) -> float:
    return part / whole if whole > 0 else 0.0


class ActivityStats:
    def __init__(self, activity_filter: ActivityFilter):
        self.filter = activity_filter

    @classmethod
    def for_activities(
        cls, activities: List[Activity], now: Clock = utc_now
    ) -> "ActivityStats":
        return cls(ActivityFilter(activities, now=now))

    @property
    def total(self) -> int:
        return len(self.filter.activities)

    @property
    def completed(self) -> int:
        return len(self.filter.completed)

    @property
    def active(self) -> int:
        return len(self.filter.active)

    @property
    def overdue(self) -> int:
        return len(self.filter.overdue)

    def priority_count(self, priority: ActivityPriority) -> int:
        return len(self.filter.by_priority(priority))

    @property
    def completion_rate(self) -> float:
        return _rate(self.completed, self.total)

    @property
    def overdue_rate(self) -> float:
        return _rate(self.overdue, self.active)

    @property
    def ahead_rate(self) -> float:
        return _rate(len(self.filter.completed_ahead), self.completed)

    @property
    def on_time_rate(self) -> float:
        return _rate(len(self.filter.completed_jit), self.completed)

    @property
    def overrun_rate(self) -> float:
        return _rate(len(self.filter.completed_overrun), self.completed)

    def summary(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "running": len(self.filter.running),
            "completed": self.completed,
            "canceled": len(self.filter.canceled),
            "pending": len(self.filter.all_pending),
            "overdue": self.overdue,
            "ahead": len(self.filter.completed_ahead),
            "jit": len(self.filter.completed_jit),
            "overrun": len(self.filter.completed_overrun),
        }
