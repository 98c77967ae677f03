import logging
import subprocess
import sys
from pathlib import Path

from httpx import ASGITransport, AsyncClient

from shelfsync.app import create_app
from shelfsync.config import API_BASE_URL, DB_PATH, LOG_LEVEL, VIEWER_ID
from shelfsync.mcp.desk import ReadingDesk
from shelfsync.mcp.server import create_mcp_server
from shelfsync.remote import ShelfsyncClient


def run_migrations():
    """Run Alembic migrations before starting the MCP server."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)

    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=False,
    )
    if result.returncode != 0:
        sys.exit(1)


def main():
    # stdout carries the MCP protocol
    logging.basicConfig(
        level=LOG_LEVEL,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_migrations()

    app = create_app()
    transport = ASGITransport(app=app)
    headers = {"X-User-Id": VIEWER_ID} if VIEWER_ID else {}
    http = AsyncClient(transport=transport, base_url=API_BASE_URL, headers=headers)
    desk = ReadingDesk.connect(
        ShelfsyncClient(http),
        viewer_id=VIEWER_ID or None,
        feed=app.state.change_feed,
    )
    mcp = create_mcp_server(desk)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
