import logging
from typing import Dict, FrozenSet, Iterable, List, Optional
from uuid import UUID

from valta.clock import Clock, utc_now
from valta.models.activity import Activity, ActivityOutcome, ActivityStatus
from valta.models.member import TeamMember
from valta.models.team import Team
from valta.services.outcome_service import classify_outcome

logger = logging.getLogger(__name__)


START = "start"
REQUEST_COMPLETION = "request_completion"
APPROVE = "approve"
REJECT = "reject"
CANCEL = "cancel"
COMPLETE = "complete"

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[ActivityStatus]] = {
    START: frozenset({ActivityStatus.TEAM_MEMBER_PENDING}),
    REQUEST_COMPLETION: frozenset({ActivityStatus.RUNNING}),
    APPROVE: frozenset({ActivityStatus.MANAGER_PENDING}),
    REJECT: frozenset({ActivityStatus.MANAGER_PENDING}),
    CANCEL: frozenset({ActivityStatus.TEAM_MEMBER_PENDING, ActivityStatus.RUNNING}),
    COMPLETE: frozenset(
        {
            ActivityStatus.TEAM_MEMBER_PENDING,
            ActivityStatus.RUNNING,
            ActivityStatus.MANAGER_PENDING,
        }
    ),
}


def can_transition(status: ActivityStatus, operation: str) -> bool:
    return status in ALLOWED_TRANSITIONS.get(operation, frozenset())


def find_activity(activity_id: UUID, activities: List[Activity]) -> Optional[Activity]:
    return next((a for a in activities if a.id == activity_id), None)


class ActivityService:
    """Status transitions for activities held in a caller-owned list.

    Every operation mutates the matching activity in place and returns it.
    An unknown id or a transition the current status does not allow leaves
    the list untouched and returns None.
    """

    def __init__(self, now: Clock = utc_now):
        self.now = now

    def _guarded(
        self, activity_id: UUID, operation: str, activities: List[Activity]
    ) -> Optional[Activity]:
        activity = find_activity(activity_id, activities)
        if activity is None:
            logger.debug(f"{operation}: activity {activity_id} not found")
            return None

        if not can_transition(activity.status, operation):
            logger.debug(
                f"{operation}: not allowed from {activity.status.value} "
                f"for activity {activity_id}"
            )
            return None

        return activity

    def start_activity(
        self, activity_id: UUID, activities: List[Activity]
    ) -> Optional[Activity]:
        """Team member picks up a pending activity."""
        activity = self._guarded(activity_id, START, activities)
        if activity is None:
            return None

        activity.status = ActivityStatus.RUNNING
        activity.started_at = self.now()
        return activity

    def request_completion(
        self,
        activity_id: UUID,
        activities: List[Activity],
        outcome: Optional[ActivityOutcome] = None,
    ) -> Optional[Activity]:
        """Team member asks the manager to sign off a running activity.

        The completion time recorded here is provisional until approval.
        """
        activity = self._guarded(activity_id, REQUEST_COMPLETION, activities)
        if activity is None:
            return None

        now = self.now()
        activity.status = ActivityStatus.MANAGER_PENDING
        activity.outcome = outcome or classify_outcome(activity.deadline, now)
        activity.completed_at = now
        return activity

    def approve_completion(
        self, activity_id: UUID, activities: List[Activity]
    ) -> Optional[Activity]:
        activity = self._guarded(activity_id, APPROVE, activities)
        if activity is None:
            return None

        if activity.outcome is None:
            requested_at = activity.completed_at or self.now()
            activity.outcome = classify_outcome(activity.deadline, requested_at)

        activity.status = ActivityStatus.COMPLETED
        activity.completed_at = self.now()
        return activity

    def reject_completion(
        self, activity_id: UUID, activities: List[Activity]
    ) -> Optional[Activity]:
        """Send an activity awaiting approval back to running.

        The provisional completion time is kept.
        """
        activity = self._guarded(activity_id, REJECT, activities)
        if activity is None:
            return None

        activity.status = ActivityStatus.RUNNING
        activity.outcome = None
        return activity

    def cancel_activity(
        self, activity_id: UUID, activities: List[Activity]
    ) -> Optional[Activity]:
        activity = self._guarded(activity_id, CANCEL, activities)
        if activity is None:
            return None

        activity.status = ActivityStatus.CANCELED
        return activity

    def complete_activity(
        self,
        activity_id: UUID,
        activities: List[Activity],
        outcome: Optional[ActivityOutcome] = None,
    ) -> Optional[Activity]:
        """Manager closes an activity without the request/approve round trip."""
        activity = self._guarded(activity_id, COMPLETE, activities)
        if activity is None:
            return None

        now = self.now()
        activity.status = ActivityStatus.COMPLETED
        activity.outcome = outcome or classify_outcome(activity.deadline, now)
        activity.completed_at = now
        return activity


class TeamService:
    @staticmethod
    def add_member(member: TeamMember, team: Team) -> None:
        team.members.append(member)

    @staticmethod
    def remove_member(member_id: UUID, team: Team) -> None:
        team.members = [m for m in team.members if m.id != member_id]

    @staticmethod
    def add_activity(activity: Activity, team: Team) -> None:
        """Newest activities go first."""
        if activity.manager_email is None:
            activity.manager_email = team.manager_email
        team.activities.insert(0, activity)

    @staticmethod
    def remove_activities(activity_ids: Iterable[UUID], team: Team) -> int:
        ids = set(activity_ids)
        before = len(team.activities)
        team.activities = [a for a in team.activities if a.id not in ids]
        return before - len(team.activities)
