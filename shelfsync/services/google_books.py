"""Google Books API client for free-text search and volume lookups."""

import logging
from dataclasses import dataclass, field

import httpx

from shelfsync.config import (
    GOOGLE_BOOKS_API_KEY,
    GOOGLE_BOOKS_BASE_URL,
    GOOGLE_BOOKS_MAX_RESULTS,
    GOOGLE_BOOKS_TIMEOUT,
)

logger = logging.getLogger(__name__)


@dataclass
class GoogleVolume:
    """The subset of a Google Books volume the store keeps."""

    id: str
    title: str = "Unknown Title"
    authors: list[str] = field(default_factory=lambda: ["Unknown Author"])
    description: str = ""
    thumbnail: str = ""
    page_count: int = 0
    published_date: str = ""
    categories: list[str] = field(default_factory=list)


def _parse_volume(item: dict) -> GoogleVolume:
    info = item.get("volumeInfo") or {}
    images = info.get("imageLinks") or {}
    return GoogleVolume(
        id=item["id"],
        title=info.get("title") or "Unknown Title",
        authors=info.get("authors") or ["Unknown Author"],
        description=info.get("description") or "",
        thumbnail=images.get("thumbnail") or images.get("smallThumbnail") or "",
        page_count=info.get("pageCount") or 0,
        published_date=info.get("publishedDate") or "",
        categories=info.get("categories") or [],
    )


def _params(**params) -> dict:
    if GOOGLE_BOOKS_API_KEY:
        params["key"] = GOOGLE_BOOKS_API_KEY
    return params


async def search_volumes(query: str, max_results: int = GOOGLE_BOOKS_MAX_RESULTS) -> list[GoogleVolume] | None:
    """Free-text search. Returns None when the API cannot be used, [] for no hits."""
    try:
        async with httpx.AsyncClient(timeout=GOOGLE_BOOKS_TIMEOUT) as client:
            resp = await client.get(
                GOOGLE_BOOKS_BASE_URL,
                params=_params(q=query, maxResults=max_results),
            )
            if resp.status_code != 200:
                logger.warning("Google Books search failed: %r -> %d", query, resp.status_code)
                return None
            items = resp.json().get("items") or []
            return [_parse_volume(item) for item in items if item.get("id")]
    except httpx.HTTPError as e:
        logger.error("Google Books search error for %r: %s", query, e)
        return None


async def fetch_volume(volume_id: str) -> GoogleVolume | None:
    """Look up one volume by its Google Books id."""
    try:
        async with httpx.AsyncClient(timeout=GOOGLE_BOOKS_TIMEOUT) as client:
            resp = await client.get(f"{GOOGLE_BOOKS_BASE_URL}/{volume_id}", params=_params())
            if resp.status_code != 200:
                logger.warning("Google Books volume lookup failed: %s -> %d", volume_id, resp.status_code)
                return None
            data = resp.json()
            if not data.get("id"):
                return None
            return _parse_volume(data)
    except httpx.HTTPError as e:
        logger.error("Google Books API error for volume %s: %s", volume_id, e)
        return None
