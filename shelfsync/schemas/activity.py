from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from shelfsync.sync.entities import ShelfStatus


class ActivityItem(BaseModel):
    id: str
    type: Literal["shelf", "review"]
    user_id: str
    book_id: str
    timestamp: datetime
    status: ShelfStatus | None = None
    rating: int | None = None
    review_text: str | None = None
