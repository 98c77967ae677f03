import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.database import get_session
from shelfsync.models import ShelfMembership
from shelfsync.routers.deps import get_change_feed, get_viewer_id, require_owner
from shelfsync.schemas.shelf import MembershipId, MembershipResponse, MembershipUpdate
from shelfsync.sync.entities import ShelfEntry, ShelfStatus
from shelfsync.sync.events import LocalChangeFeed, ShelfChange

router = APIRouter(prefix="/api/users/{user_id}/shelf", tags=["shelves"])


def _to_entry(membership: ShelfMembership) -> ShelfEntry:
    return ShelfEntry.from_payload(MembershipResponse.model_validate(membership).model_dump())


async def _get_membership(session: AsyncSession, user_id: str, book_id: str) -> ShelfMembership | None:
    result = await session.execute(
        select(ShelfMembership).where(
            ShelfMembership.user_id == user_id,
            ShelfMembership.book_id == book_id,
        )
    )
    return result.scalar_one_or_none()


@router.get("", response_model=list[MembershipResponse])
async def list_memberships(
    user_id: str,
    status: ShelfStatus | None = None,
    session: AsyncSession = Depends(get_session),
):
    stmt = select(ShelfMembership).where(ShelfMembership.user_id == user_id)
    if status is not None:
        stmt = stmt.where(ShelfMembership.status == status.value)
    stmt = stmt.order_by(ShelfMembership.date_added)
    result = await session.execute(stmt)
    return result.scalars().all()


@router.put("/{book_id}", response_model=MembershipId)
async def upsert_membership(
    user_id: str,
    book_id: str,
    data: MembershipUpdate,
    viewer_id: str | None = Depends(get_viewer_id),
    feed: LocalChangeFeed = Depends(get_change_feed),
    session: AsyncSession = Depends(get_session),
):
    """Put a book on a shelf. A book is on at most one of a user's shelves."""
    require_owner(viewer_id, user_id)
    now = datetime.now(UTC)
    status = data.status

    membership = await _get_membership(session, user_id, book_id)
    if membership is None:
        membership = ShelfMembership(
            id=uuid.uuid4().hex,
            user_id=user_id,
            book_id=book_id,
            status=status.value,
            date_added=now,
            date_started=now if status is ShelfStatus.CURRENTLY_READING else None,
            date_finished=now if status is ShelfStatus.READ else None,
        )
        session.add(membership)
    else:
        membership.status = status.value
        # start and finish dates record the first transition only
        if status is ShelfStatus.CURRENTLY_READING and membership.date_started is None:
            membership.date_started = now
        if status is ShelfStatus.READ and membership.date_finished is None:
            membership.date_finished = now

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="Book was shelved concurrently, retry")
    await session.refresh(membership)
    feed.publish(ShelfChange(user_id=user_id, book_id=book_id, entry=_to_entry(membership)))
    return MembershipId(id=membership.id)


@router.delete("/{book_id}", status_code=204)
async def delete_membership(
    user_id: str,
    book_id: str,
    viewer_id: str | None = Depends(get_viewer_id),
    feed: LocalChangeFeed = Depends(get_change_feed),
    session: AsyncSession = Depends(get_session),
):
    require_owner(viewer_id, user_id)
    membership = await _get_membership(session, user_id, book_id)
    if membership is None:
        return
    await session.delete(membership)
    await session.commit()
    feed.publish(ShelfChange(user_id=user_id, book_id=book_id))
