from typing import List, Optional
from uuid import UUID

from valta.models import BaseRecord
from valta.models.activity import Activity
from valta.models.member import TeamMember


class Team(BaseRecord):
    name: str
    members: List[TeamMember] = []
    activities: List[Activity] = []
    manager_email: Optional[str] = None

    def find_member(self, member_id: UUID) -> Optional[TeamMember]:
        return next((m for m in self.members if m.id == member_id), None)

    def find_activity(self, activity_id: UUID) -> Optional[Activity]:
        return next((a for a in self.activities if a.id == activity_id), None)
