from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BookPayload(BaseModel):
    title: str
    authors: list[str] = Field(default_factory=list)
    thumbnail: str = ""
    page_count: int = 0
    published_date: str = ""
    categories: list[str] = Field(default_factory=list)
    description: str = ""


class BookResponse(BookPayload):
    model_config = ConfigDict(from_attributes=True)

    id: str
    added_by: str | None = None
    added_at: datetime | None = None


class BookSummaryResponse(BaseModel):
    id: str
    title: str
    authors: list[str] = Field(default_factory=list)
    thumbnail: str = ""
    page_count: int = 0
    published_date: str = ""
