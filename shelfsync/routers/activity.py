from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.database import get_session
from shelfsync.models import Review, ShelfMembership
from shelfsync.schemas.activity import ActivityItem

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("", response_model=list[ActivityItem])
async def activity_feed(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Recent shelf additions and public reviews, newest first."""
    memberships = (
        await session.execute(
            select(ShelfMembership).order_by(ShelfMembership.date_added.desc()).limit(limit)
        )
    ).scalars().all()
    reviews = (
        await session.execute(
            select(Review)
            .where(Review.is_private.is_(False))
            .order_by(Review.created_at.desc())
            .limit(limit)
        )
    ).scalars().all()

    items = [
        ActivityItem(
            id=m.id,
            type="shelf",
            user_id=m.user_id,
            book_id=m.book_id,
            status=m.status,
            timestamp=m.date_added,
        )
        for m in memberships
    ]
    items.extend(
        ActivityItem(
            id=r.id,
            type="review",
            user_id=r.user_id,
            book_id=r.book_id,
            rating=r.rating,
            review_text=r.review_text,
            timestamp=r.created_at,
        )
        for r in reviews
    )
    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items[:limit]
