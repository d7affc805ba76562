from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class TeamMember(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str

    model_config = ConfigDict(frozen=True)

    @property
    def initials(self) -> str:
        parts = self.name.split()
        if len(parts) >= 2:
            return f"{parts[0][:1]}{parts[1][:1]}"
        return self.name[:2].upper()


class TeamMemberEntry(BaseModel):
    """One decoded row of the team-membership collection."""

    team_name: str
    member: TeamMember
    manager_email: Optional[str] = None
