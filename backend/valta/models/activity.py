from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from valta.models import BaseRecord
from valta.models.member import TeamMember


class ActivityStatus(str, Enum):
    TEAM_MEMBER_PENDING = "Team Member Pending"
    RUNNING = "Running"
    MANAGER_PENDING = "Manager Pending"
    COMPLETED = "Completed"
    CANCELED = "Canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (ActivityStatus.COMPLETED, ActivityStatus.CANCELED)


class ActivityPriority(int, Enum):
    P0 = 0
    P1 = 1
    P2 = 2
    P3 = 3

    @property
    def short_name(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        labels = {0: "Critical", 1: "High", 2: "Medium", 3: "Low"}
        return f"{self.name} - {labels[self.value]}"


class ActivityOutcome(str, Enum):
    AHEAD = "Ahead"
    JIT = "Just In Time"
    OVERRUN = "Overrun"


class Activity(BaseRecord):
    name: str
    description: str = ""
    assigned_member: TeamMember
    priority: ActivityPriority = ActivityPriority.P3
    status: ActivityStatus = ActivityStatus.TEAM_MEMBER_PENDING
    outcome: Optional[ActivityOutcome] = None
    deadline: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    manager_email: Optional[str] = None

    @property
    def assigned_member_id(self) -> UUID:
        return self.assigned_member.id


class LogAction(str, Enum):
    CREATED = "Created"
    STARTED = "Started"
    COMPLETION_REQUESTED = "Completion Requested"
    COMPLETED = "Completed"
    CANCELED = "Canceled"


class ActivityLogEntry(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    activity: Activity
    action: LogAction
    timestamp: datetime
    performed_by: str
