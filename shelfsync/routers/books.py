from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfsync.config import GOOGLE_BOOKS_MAX_RESULTS
from shelfsync.database import get_session
from shelfsync.models import Book
from shelfsync.routers.deps import get_viewer_id
from shelfsync.schemas.book import BookPayload, BookResponse, BookSummaryResponse
from shelfsync.services.google_books import fetch_volume, search_volumes

router = APIRouter(prefix="/api", tags=["books"])


@router.get("/search", response_model=list[BookSummaryResponse])
async def search_books(
    q: str = Query(..., min_length=1, description="Free text: title, author or ISBN"),
    limit: int = Query(GOOGLE_BOOKS_MAX_RESULTS, ge=1, le=40),
):
    volumes = await search_volumes(q, max_results=limit)
    if volumes is None:
        raise HTTPException(status_code=502, detail="Book search is unavailable")
    return [
        BookSummaryResponse(
            id=v.id,
            title=v.title,
            authors=v.authors,
            thumbnail=v.thumbnail,
            page_count=v.page_count,
            published_date=v.published_date,
        )
        for v in volumes
    ]


@router.get("/books/{book_id}", response_model=BookResponse)
async def get_book(book_id: str, session: AsyncSession = Depends(get_session)):
    """Stored metadata, falling back to Google Books (and storing the result)."""
    book = (await session.execute(select(Book).where(Book.id == book_id))).scalar_one_or_none()
    if book is not None:
        return book

    volume = await fetch_volume(book_id)
    if volume is None:
        raise HTTPException(status_code=404, detail="Book not found")
    book = Book(
        id=book_id,
        title=volume.title,
        authors=volume.authors,
        thumbnail=volume.thumbnail,
        page_count=volume.page_count,
        published_date=volume.published_date,
        categories=volume.categories,
        description=volume.description,
    )
    session.add(book)
    await session.commit()
    await session.refresh(book)
    return book


@router.put("/books/{book_id}", response_model=BookResponse)
async def put_book(
    book_id: str,
    data: BookPayload,
    viewer_id: str | None = Depends(get_viewer_id),
    session: AsyncSession = Depends(get_session),
):
    book = (await session.execute(select(Book).where(Book.id == book_id))).scalar_one_or_none()
    if book is None:
        book = Book(id=book_id, added_by=viewer_id, **data.model_dump())
        session.add(book)
    else:
        for key, value in data.model_dump().items():
            setattr(book, key, value)
    await session.commit()
    await session.refresh(book)
    return book
