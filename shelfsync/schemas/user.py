from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserCreate(BaseModel):
    id: str
    display_name: str
    is_teacher: bool = False


class UserStats(BaseModel):
    books_read: int = 0
    currently_reading: int = 0
    want_to_read: int = 0
    reviews_written: int = 0


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    is_teacher: bool
    created_at: datetime
    stats: UserStats = UserStats()


class TrendingBook(BaseModel):
    book_id: str
    count: int


class TeacherStats(BaseModel):
    students: list[UserResponse]
    trending_books: list[TrendingBook]
    total_students: int
