from datetime import datetime

from pydantic import BaseModel, ConfigDict

from shelfsync.sync.entities import ShelfStatus


class MembershipUpdate(BaseModel):
    status: ShelfStatus


class MembershipId(BaseModel):
    id: str


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    book_id: str
    status: ShelfStatus
    date_added: datetime | None
    date_started: datetime | None
    date_finished: datetime | None
