from datetime import datetime, timedelta
from typing import Optional

from valta.clock import utc_now
from valta.models.activity import Activity, ActivityOutcome, ActivityStatus

AHEAD_THRESHOLD = timedelta(minutes=30)
JIT_WINDOW = timedelta(minutes=5)

# Statuses whose completed_at is a real (provisional or final) completion.
RECORDED_COMPLETION_STATUSES = frozenset(
    {ActivityStatus.MANAGER_PENDING, ActivityStatus.COMPLETED}
)


def classify_outcome(deadline: datetime, completed_at: datetime) -> ActivityOutcome:
    """Classify a completion instant against its deadline.

    - Overrun: more than 5 minutes after the deadline
    - Just In Time: within 5 minutes either side of the deadline
    - Ahead: at least 30 minutes before the deadline

    Completions 5 to 30 minutes early have no category of their own and
    fall back to Just In Time.
    """
    delta = completed_at - deadline

    if delta > JIT_WINDOW:
        return ActivityOutcome.OVERRUN

    if abs(delta) <= JIT_WINDOW:
        return ActivityOutcome.JIT

    if delta <= -AHEAD_THRESHOLD:
        return ActivityOutcome.AHEAD

    return ActivityOutcome.JIT


def preview_outcome(
    activity: Activity, at: Optional[datetime] = None
) -> ActivityOutcome:
    """Outcome the activity would get if it were completed at `at` (default now).

    Once completion has been requested or approved, the recorded completion
    time takes precedence over the hypothetical one. A rejected request leaves
    a stale completed_at behind, which is ignored.
    """
    completion = None
    if activity.status in RECORDED_COMPLETION_STATUSES:
        completion = activity.completed_at
    completion = completion or at or utc_now()
    return classify_outcome(activity.deadline, completion)
