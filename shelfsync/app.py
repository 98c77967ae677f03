from fastapi import FastAPI

from shelfsync.routers import activity, books, reviews, shelves, users
from shelfsync.sync.events import LocalChangeFeed


def create_app() -> FastAPI:
    app = FastAPI(title="Shelfsync", version="0.1.0")
    app.state.change_feed = LocalChangeFeed()
    app.include_router(books.router)
    app.include_router(shelves.router)
    app.include_router(reviews.router)
    app.include_router(users.router)
    app.include_router(activity.router)
    return app


app = create_app()
