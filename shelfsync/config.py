import os
from pathlib import Path

DB_PATH = os.environ.get("SHELFSYNC_DB_PATH", str(Path.cwd() / "shelfsync.db"))
DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"

# Google Books API settings
GOOGLE_BOOKS_BASE_URL = os.environ.get("SHELFSYNC_GB_BASE_URL", "https://www.googleapis.com/books/v1/volumes")
GOOGLE_BOOKS_API_KEY = os.environ.get("SHELFSYNC_GB_API_KEY", "")
GOOGLE_BOOKS_TIMEOUT = float(os.environ.get("SHELFSYNC_GB_TIMEOUT", "10.0"))
GOOGLE_BOOKS_MAX_RESULTS = int(os.environ.get("SHELFSYNC_GB_MAX_RESULTS", "20"))

# Search query cache
SEARCH_DEBOUNCE_SECONDS = float(os.environ.get("SHELFSYNC_SEARCH_DEBOUNCE", "0.3"))
SEARCH_CACHE_TTL_SECONDS = float(os.environ.get("SHELFSYNC_SEARCH_TTL", "300"))
SEARCH_CACHE_SWEEP_SECONDS = float(os.environ.get("SHELFSYNC_SEARCH_SWEEP", "60"))
SEARCH_MIN_QUERY_LENGTH = int(os.environ.get("SHELFSYNC_SEARCH_MIN_LENGTH", "2"))

# MCP front end
API_BASE_URL = os.environ.get("SHELFSYNC_API_URL", "http://localhost")
VIEWER_ID = os.environ.get("SHELFSYNC_USER_ID", "")
LOG_LEVEL = os.environ.get("SHELFSYNC_LOG_LEVEL", "INFO")
