from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from valta.clock import utc_now


class BaseRecord(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    created_at: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        from_attributes=True,
        ser_json_timedelta="iso8601",
    )
