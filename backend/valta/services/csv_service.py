import csv
import io
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from uuid import NAMESPACE_URL, UUID, uuid4, uuid5

from valta.models.activity import (
    Activity,
    ActivityOutcome,
    ActivityPriority,
    ActivityStatus,
)
from valta.models.member import TeamMember, TeamMemberEntry
from valta.models.team import Team

logger = logging.getLogger(__name__)


ACTIVITY_COLUMNS = [
    "id",
    "name",
    "description",
    "memberName",
    "priority",
    "status",
    "outcome",
    "createdAt",
    "deadline",
    "startedAt",
    "completedAt",
    "managerEmail",
]
TEAM_COLUMNS = ["id", "name", "team", "email", "managerEmail"]

# Everything through `deadline` must be present.
MIN_ACTIVITY_COLUMNS = 9
MIN_TEAM_COLUMNS = 3

DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
LEGACY_MEMBER_NAMESPACE = uuid5(NAMESPACE_URL, "valta:team-member")


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(DATE_FORMAT)


def parse_date(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp carrying an explicit UTC offset."""
    value = value.strip()
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def parse_priority(value: str) -> ActivityPriority:
    try:
        return ActivityPriority[value.strip().upper()]
    except KeyError:
        return ActivityPriority.P3


def parse_status(value: str) -> ActivityStatus:
    try:
        return ActivityStatus(value.strip())
    except ValueError:
        return ActivityStatus.TEAM_MEMBER_PENDING


def parse_outcome(value: str) -> Optional[ActivityOutcome]:
    try:
        return ActivityOutcome(value.strip())
    except ValueError:
        return None


def parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def legacy_member_id(name: str, email: str) -> UUID:
    """Stable id for membership rows written before ids were stored."""
    return uuid5(LEGACY_MEMBER_NAMESPACE, f"{name}|{email}".lower())


def _read_rows(text: str) -> List[List[str]]:
    rows = list(csv.reader(io.StringIO(text)))
    # Drop the header row and blank lines. Cells are kept verbatim; only the
    # token parsers trim whitespace.
    return [row for row in rows[1:] if row]


def _write_rows(header: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


class CSVService:
    """Flat delimited text encoding for activities and team membership."""

    # Activities

    @staticmethod
    def parse_activities(text: str, members: List[TeamMember]) -> List[Activity]:
        members_by_name: Dict[str, TeamMember] = {}
        for member in members:
            members_by_name.setdefault(member.name, member)

        activities = []
        for row_number, columns in enumerate(_read_rows(text), start=1):
            if len(columns) < MIN_ACTIVITY_COLUMNS:
                logger.debug(f"Skipping activity row {row_number}: too few columns")
                continue

            columns = columns + [""] * (len(ACTIVITY_COLUMNS) - len(columns))
            (
                id_text,
                name,
                description,
                member_name,
                priority_text,
                status_text,
                outcome_text,
                created_at_text,
                deadline_text,
                started_at_text,
                completed_at_text,
                manager_email,
            ) = columns[: len(ACTIVITY_COLUMNS)]

            member = members_by_name.get(member_name)
            if member is None:
                logger.warning(
                    f"Member {member_name!r} not found for activity {name!r}, skipping"
                )
                continue

            created_at = parse_date(created_at_text)
            deadline = parse_date(deadline_text)
            if created_at is None or deadline is None:
                logger.warning(
                    f"Activity {name!r} on row {row_number} has invalid dates, skipping"
                )
                continue

            activities.append(
                Activity(
                    id=parse_uuid(id_text) or uuid4(),
                    name=name,
                    description=description,
                    assigned_member=member,
                    priority=parse_priority(priority_text),
                    status=parse_status(status_text),
                    outcome=parse_outcome(outcome_text),
                    created_at=created_at,
                    deadline=deadline,
                    started_at=parse_date(started_at_text),
                    completed_at=parse_date(completed_at_text),
                    manager_email=manager_email.strip() or None,
                )
            )

        return activities

    @staticmethod
    def serialize_activities(activities: Iterable[Activity]) -> str:
        rows = (
            [
                str(activity.id).upper(),
                activity.name,
                activity.description,
                activity.assigned_member.name,
                activity.priority.short_name.lower(),
                activity.status.value,
                activity.outcome.value if activity.outcome else "",
                format_date(activity.created_at),
                format_date(activity.deadline),
                format_date(activity.started_at),
                format_date(activity.completed_at),
                activity.manager_email or "",
            ]
            for activity in activities
        )
        return _write_rows(ACTIVITY_COLUMNS, rows)

    # Teams

    @staticmethod
    def parse_teams(text: str) -> List[TeamMemberEntry]:
        """Accepts `name,team,email[,managerEmail]` rows, or the same prefixed by an id."""
        entries = []
        for columns in _read_rows(text):
            if len(columns) < MIN_TEAM_COLUMNS:
                continue

            member_id = parse_uuid(columns[0]) if len(columns) >= 4 else None
            if member_id is not None:
                name, team_name, email = columns[1:4]
                manager_email = columns[4] if len(columns) > 4 else ""
            else:
                name, team_name, email = columns[0:3]
                manager_email = columns[3] if len(columns) > 3 else ""

            email = email.strip()
            if member_id is None:
                member_id = legacy_member_id(name, email)

            entries.append(
                TeamMemberEntry(
                    team_name=team_name,
                    member=TeamMember(id=member_id, name=name, email=email),
                    manager_email=manager_email.strip() or None,
                )
            )

        return entries

    @staticmethod
    def serialize_teams(teams: Iterable[Team]) -> str:
        rows = (
            [
                str(member.id).upper(),
                member.name,
                team.name,
                member.email,
                team.manager_email or "",
            ]
            for team in teams
            for member in team.members
        )
        return _write_rows(TEAM_COLUMNS, rows)
