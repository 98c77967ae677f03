from shelfsync.models.book import Book
from shelfsync.models.review import Review
from shelfsync.models.shelf import ShelfMembership
from shelfsync.models.user import User

__all__ = ["Book", "Review", "ShelfMembership", "User"]
