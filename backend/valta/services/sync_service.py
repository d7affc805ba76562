import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional
from uuid import NAMESPACE_URL, UUID, uuid5

from valta.clock import Clock, utc_now
from valta.db.storage import StorageService
from valta.exceptions import StorageError, SyncError
from valta.models.activity import Activity, ActivityOutcome
from valta.models.member import TeamMemberEntry
from valta.models.team import Team
from valta.services.activity_service import ActivityService, TeamService
from valta.services.csv_service import CSVService

logger = logging.getLogger(__name__)

TEAM_NAMESPACE = uuid5(NAMESPACE_URL, "valta:team")


def team_id_for(name: str) -> UUID:
    """Teams only exist as a name in the membership blob; derive a stable id from it."""
    return uuid5(TEAM_NAMESPACE, name)


def build_teams(
    entries: List[TeamMemberEntry], activities: List[Activity]
) -> List[Team]:
    """Group members by team name and hand each team the activities of its members."""
    grouped: Dict[str, List[TeamMemberEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.team_name].append(entry)

    teams = []
    for name, team_entries in grouped.items():
        members = [entry.member for entry in team_entries]
        member_ids = {member.id for member in members}
        teams.append(
            Team(
                id=team_id_for(name),
                name=name,
                members=members,
                activities=[
                    a for a in activities if a.assigned_member_id in member_ids
                ],
                manager_email=team_entries[0].manager_email,
            )
        )

    return sorted(teams, key=lambda team: team.name)


class SyncCoordinator:
    """Keeps one client's team/activity tree in step with the shared store.

    The whole activity collection is uploaded on every sync and replaces the
    remote copy; whichever client uploads last wins. Nothing is merged.
    """

    def __init__(
        self,
        storage: StorageService,
        csv_service: Optional[CSVService] = None,
        now: Clock = utc_now,
    ):
        self.storage = storage
        self.csv = csv_service or CSVService()
        self.activity_service = ActivityService(now=now)
        self.team_service = TeamService()

        self.teams: List[Team] = []
        self.is_loading = False
        self.is_syncing = False
        self.has_pending_upload = False
        self.last_error: Optional[Exception] = None
        # Bumped by every applied mutation.
        self.revision = 0

    @property
    def activities(self) -> List[Activity]:
        return [activity for team in self.teams for activity in team.activities]

    # Lookups

    def find_team(self, team_id: UUID) -> Optional[Team]:
        return next((team for team in self.teams if team.id == team_id), None)

    def find_team_containing_activity(self, activity_id: UUID) -> Optional[Team]:
        return next(
            (
                team
                for team in self.teams
                if team.find_activity(activity_id) is not None
            ),
            None,
        )

    def find_team_containing_member(self, member_id: UUID) -> Optional[Team]:
        return next(
            (team for team in self.teams if team.find_member(member_id) is not None),
            None,
        )

    # Download

    async def load_data(self) -> bool:
        """Replace the in-memory tree with the remote one.

        Returns False when skipped: another load or sync is running, local
        changes are still waiting to be uploaded, or the tree was mutated
        while the download was in flight.
        On failure the previous tree is left as it was and the error is raised.
        """
        if self.is_loading or self.is_syncing:
            logger.info(
                f"Skipping load: is_loading={self.is_loading}, is_syncing={self.is_syncing}"
            )
            return False

        if self.has_pending_upload:
            logger.info("Skipping load: local changes have not been uploaded yet")
            return False

        revision = self.revision
        self.is_loading = True
        try:
            teams_text = await self.storage.download_teams()
            entries = self.csv.parse_teams(teams_text)

            activities_text = await self.storage.download_activities()
            activities = self.csv.parse_activities(
                activities_text, [entry.member for entry in entries]
            )

            teams = build_teams(entries, activities)
        except (StorageError, SyncError) as e:
            logger.error(f"Error loading data: {e}")
            self.last_error = e
            raise
        except Exception as e:
            logger.error(f"Error decoding data: {e}", exc_info=True)
            self.last_error = e
            raise SyncError(f"Failed to load data: {e}") from e
        finally:
            self.is_loading = False

        if self.revision != revision:
            logger.info("Discarding downloaded data: local changes were made during the load")
            return False

        self.teams = teams
        self.last_error = None
        logger.info(
            f"Loaded {len(teams)} teams and {sum(len(t.activities) for t in teams)} activities"
        )
        return True

    # Upload

    async def sync_activities(self) -> None:
        """Upload every team's activities, replacing the remote collection."""
        activities = self.activities
        payload = self.csv.serialize_activities(activities)

        self.is_syncing = True
        logger.info(f"Syncing {len(activities)} activities")
        try:
            await self.storage.upload_activities(payload)
        except StorageError as e:
            logger.error(f"Error uploading activities: {e}")
            self.has_pending_upload = True
            self.last_error = e
            raise
        finally:
            self.is_syncing = False

        self.has_pending_upload = False
        self.last_error = None
        logger.info(f"Uploaded {len(activities)} activities")

    async def refresh(self) -> None:
        """One sync tick: push a pending upload first so it is not lost, then reload."""
        if self.has_pending_upload:
            await self.sync_activities()
        await self.load_data()

    # Mutations

    async def _mutate(
        self,
        activity_id: UUID,
        operation: Callable[[UUID, List[Activity]], Optional[Activity]],
    ) -> Optional[Activity]:
        team = self.find_team_containing_activity(activity_id)
        if team is None:
            logger.warning(f"Could not find team for activity {activity_id}")
            return None

        activity = operation(activity_id, team.activities)
        if activity is None:
            return None

        self.revision += 1
        await self._sync_after_mutation()
        return activity

    async def _sync_after_mutation(self) -> None:
        try:
            await self.sync_activities()
        except StorageError:
            logger.warning("Change kept locally, upload will be retried on next refresh")

    async def start_activity(self, activity_id: UUID) -> Optional[Activity]:
        return await self._mutate(activity_id, self.activity_service.start_activity)

    async def request_completion(
        self, activity_id: UUID, outcome: Optional[ActivityOutcome] = None
    ) -> Optional[Activity]:
        return await self._mutate(
            activity_id,
            lambda id_, activities: self.activity_service.request_completion(
                id_, activities, outcome
            ),
        )

    async def approve_completion(self, activity_id: UUID) -> Optional[Activity]:
        return await self._mutate(activity_id, self.activity_service.approve_completion)

    async def reject_completion(self, activity_id: UUID) -> Optional[Activity]:
        return await self._mutate(activity_id, self.activity_service.reject_completion)

    async def cancel_activity(self, activity_id: UUID) -> Optional[Activity]:
        return await self._mutate(activity_id, self.activity_service.cancel_activity)

    async def complete_activity(
        self, activity_id: UUID, outcome: Optional[ActivityOutcome] = None
    ) -> Optional[Activity]:
        return await self._mutate(
            activity_id,
            lambda id_, activities: self.activity_service.complete_activity(
                id_, activities, outcome
            ),
        )

    async def add_activity(self, team_id: UUID, activity: Activity) -> Optional[Activity]:
        team = self.find_team(team_id)
        if team is None:
            logger.warning(f"Could not find team {team_id}")
            return None

        self.team_service.add_activity(activity, team)
        self.revision += 1
        await self._sync_after_mutation()
        return activity

    async def remove_activities(self, activity_ids: Iterable[UUID]) -> int:
        ids = set(activity_ids)
        removed = sum(self.team_service.remove_activities(ids, team) for team in self.teams)
        if removed:
            self.revision += 1
            await self._sync_after_mutation()
        return removed
