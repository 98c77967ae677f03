import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.database import get_session
from shelfsync.models import Review
from shelfsync.routers.deps import get_viewer_id, is_teacher, require_owner, require_viewer
from shelfsync.schemas.review import AverageRating, ReviewCreate, ReviewResponse, ReviewUpdate

router = APIRouter(tags=["reviews"])


async def _visible(session: AsyncSession, stmt, viewer_id: str | None):
    """Private reviews are shown to their author and to teachers only."""
    if await is_teacher(session, viewer_id):
        return stmt
    if viewer_id:
        return stmt.where(or_(Review.is_private.is_(False), Review.user_id == viewer_id))
    return stmt.where(Review.is_private.is_(False))


async def _get_review_or_404(session: AsyncSession, review_id: str) -> Review:
    review = (await session.execute(select(Review).where(Review.id == review_id))).scalar_one_or_none()
    if review is None:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


@router.get("/api/books/{book_id}/reviews", response_model=list[ReviewResponse])
async def list_book_reviews(
    book_id: str,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Review).where(Review.book_id == book_id)
    stmt = await _visible(session, stmt, viewer_id)
    result = await session.execute(stmt.order_by(Review.created_at.desc()))
    return result.scalars().all()


@router.get("/api/users/{user_id}/reviews", response_model=list[ReviewResponse])
async def list_user_reviews(
    user_id: str,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Review).where(Review.user_id == user_id)
    stmt = await _visible(session, stmt, viewer_id)
    result = await session.execute(stmt.order_by(Review.created_at.desc()))
    return result.scalars().all()


@router.get("/api/books/{book_id}/rating", response_model=AverageRating)
async def average_rating(book_id: str, session: AsyncSession = Depends(get_session)):
    """Mean rating over public reviews, rounded to one decimal."""
    row = (
        await session.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.book_id == book_id, Review.is_private.is_(False)
            )
        )
    ).one()
    average, count = row
    return AverageRating(book_id=book_id, average=round(average or 0.0, 1), count=count)


@router.post("/api/books/{book_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    book_id: str,
    data: ReviewCreate,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    user_id = require_viewer(viewer_id)
    review = Review(id=uuid.uuid4().hex, user_id=user_id, book_id=book_id, **data.model_dump())
    session.add(review)
    await session.commit()
    await session.refresh(review)
    return review


@router.put("/api/reviews/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    review = await _get_review_or_404(session, review_id)
    require_owner(viewer_id, review.user_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(review, key, value)
    await session.commit()
    await session.refresh(review)
    return review


@router.delete("/api/reviews/{review_id}", status_code=204)
async def delete_review(
    review_id: str,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    review = await _get_review_or_404(session, review_id)
    require_owner(viewer_id, review.user_id)
    await session.delete(review)
    await session.commit()
