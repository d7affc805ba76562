from typing import List

from valta.models.activity import (
    Activity,
    ActivityLogEntry,
    ActivityStatus,
    LogAction,
)

DEFAULT_MANAGER = "Manager"


class ActivityLogService:
    @staticmethod
    def generate_log_entries(activities: List[Activity]) -> List[ActivityLogEntry]:
        """Reconstruct a history from activity timestamps, most recent first.

        Records only carry their current state, so request and cancel times
        are approximated from the nearest timestamp available.
        """
        entries = []
        for activity in activities:
            manager = activity.manager_email or DEFAULT_MANAGER
            member = activity.assigned_member.name

            entries.append(
                ActivityLogEntry(
                    activity=activity,
                    action=LogAction.CREATED,
                    timestamp=activity.created_at,
                    performed_by=manager,
                )
            )

            if activity.started_at:
                entries.append(
                    ActivityLogEntry(
                        activity=activity,
                        action=LogAction.STARTED,
                        timestamp=activity.started_at,
                        performed_by=member,
                    )
                )

            if activity.status == ActivityStatus.MANAGER_PENDING:
                entries.append(
                    ActivityLogEntry(
                        activity=activity,
                        action=LogAction.COMPLETION_REQUESTED,
                        timestamp=activity.completed_at
                        or activity.started_at
                        or activity.created_at,
                        performed_by=member,
                    )
                )

            if activity.status == ActivityStatus.COMPLETED and activity.completed_at:
                entries.append(
                    ActivityLogEntry(
                        activity=activity,
                        action=LogAction.COMPLETED,
                        timestamp=activity.completed_at,
                        performed_by=member,
                    )
                )

            if activity.status == ActivityStatus.CANCELED:
                entries.append(
                    ActivityLogEntry(
                        activity=activity,
                        action=LogAction.CANCELED,
                        timestamp=activity.completed_at or activity.created_at,
                        performed_by=manager,
                    )
                )

        return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
