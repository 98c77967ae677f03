from datetime import UTC, datetime

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from shelfsync.database import Base


class ShelfMembership(Base):
    __tablename__ = "shelf_memberships"
    __table_args__ = (UniqueConstraint("user_id", "book_id"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    book_id: Mapped[str] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(32))
    date_added: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    date_started: Mapped[datetime | None] = mapped_column(DateTime)
    date_finished: Mapped[datetime | None] = mapped_column(DateTime)
