from fastapi import Header, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.models import User
from shelfsync.sync.events import LocalChangeFeed


async def get_viewer_id(x_user_id: str | None = Header(None)) -> str | None:
    """Identity of the caller, as asserted by the session layer in front of the API."""
    return x_user_id


def get_change_feed(request: Request) -> LocalChangeFeed:
    return request.app.state.change_feed


def require_viewer(viewer_id: str | None) -> str:
    if not viewer_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return viewer_id


def require_owner(viewer_id: str | None, owner_id: str) -> None:
    if require_viewer(viewer_id) != owner_id:
        raise HTTPException(status_code=403, detail="Not allowed to modify another user's data")


async def is_teacher(session: AsyncSession, viewer_id: str | None) -> bool:
    if not viewer_id:
        return False
    user = (await session.execute(select(User).where(User.id == viewer_id))).scalar_one_or_none()
    return bool(user and user.is_teacher)
