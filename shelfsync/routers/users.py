from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.database import get_session
from shelfsync.models import Review, ShelfMembership, User
from shelfsync.routers.deps import get_viewer_id, is_teacher
from shelfsync.schemas.user import TeacherStats, TrendingBook, UserCreate, UserResponse, UserStats
from shelfsync.sync.entities import ShelfStatus

router = APIRouter(tags=["users"])

TRENDING_LIMIT = 10


async def _user_stats(session: AsyncSession, user_id: str) -> UserStats:
    shelf_counts = dict(
        (
            await session.execute(
                select(ShelfMembership.status, func.count(ShelfMembership.id))
                .where(ShelfMembership.user_id == user_id)
                .group_by(ShelfMembership.status)
            )
        ).all()
    )
    reviews = (
        await session.execute(select(func.count(Review.id)).where(Review.user_id == user_id))
    ).scalar()
    return UserStats(
        books_read=shelf_counts.get(ShelfStatus.READ.value, 0),
        currently_reading=shelf_counts.get(ShelfStatus.CURRENTLY_READING.value, 0),
        want_to_read=shelf_counts.get(ShelfStatus.WANT_TO_READ.value, 0),
        reviews_written=reviews or 0,
    )


async def _with_stats(session: AsyncSession, user: User) -> UserResponse:
    response = UserResponse.model_validate(user)
    response.stats = await _user_stats(session, user.id)
    return response


@router.post("/api/users", response_model=UserResponse, status_code=201)
async def create_user(data: UserCreate, session: AsyncSession = Depends(get_session)):
    existing = (await session.execute(select(User).where(User.id == data.id))).scalar_one_or_none()
    if existing is not None:
        raise HTTPException(status_code=409, detail="User already exists")
    user = User(**data.model_dump())
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return await _with_stats(session, user)


@router.get("/api/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, session: AsyncSession = Depends(get_session)):
    user = (await session.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return await _with_stats(session, user)


@router.get("/api/stats/teacher", response_model=TeacherStats)
async def teacher_stats(
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    """Class-wide statistics; only visible to teachers."""
    if not await is_teacher(session, viewer_id):
        raise HTTPException(status_code=403, detail="Teacher access required")

    students = (
        await session.execute(select(User).where(User.is_teacher.is_(False)).order_by(User.display_name))
    ).scalars().all()

    readers = func.count(ShelfMembership.id).label("readers")
    trending = (
        await session.execute(
            select(ShelfMembership.book_id, readers)
            .where(
                ShelfMembership.status.in_(
                    [ShelfStatus.READ.value, ShelfStatus.CURRENTLY_READING.value]
                )
            )
            .group_by(ShelfMembership.book_id)
            .order_by(readers.desc(), ShelfMembership.book_id)
            .limit(TRENDING_LIMIT)
        )
    ).all()

    return TeacherStats(
        students=[await _with_stats(session, s) for s in students],
        trending_books=[TrendingBook(book_id=book_id, count=count) for book_id, count in trending],
        total_students=len(students),
    )
