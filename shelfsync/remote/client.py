import httpx
from httpx import AsyncClient, Response

from shelfsync.errors import NotFound, RemoteUnavailable, ShelfSyncError, Unauthorized, ValidationError


class ShelfsyncClient:
    """Thin wrapper around httpx.AsyncClient that turns HTTP failures into
    the shelfsync error taxonomy and successful responses into JSON."""

    def __init__(self, http: AsyncClient) -> None:
        self.http = http

    async def get(self, path: str, **kwargs) -> dict | list | None:
        return await self._send("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> dict | list | None:
        return await self._send("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> dict | list | None:
        return await self._send("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> dict | list | None:
        return await self._send("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _send(self, method: str, path: str, **kwargs) -> dict | list | None:
        try:
            resp = await self.http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise RemoteUnavailable(f"{method} {path} failed: {e}") from e
        return self._handle(resp)

    def _handle(self, resp: Response) -> dict | list | None:
        if resp.status_code == 204:
            return None
        if resp.status_code >= 500:
            raise RemoteUnavailable(f"Server error {resp.status_code}: {self._detail(resp)}")
        if resp.status_code in (401, 403):
            raise Unauthorized(self._detail(resp))
        if resp.status_code == 404:
            raise NotFound(self._detail(resp))
        if resp.status_code in (400, 409, 422):
            raise ValidationError(self._detail(resp))
        if resp.status_code >= 400:
            raise ShelfSyncError(f"Unexpected status {resp.status_code}: {self._detail(resp)}")
        return resp.json()

    @staticmethod
    def _detail(resp: Response) -> str:
        try:
            detail = resp.json().get("detail", resp.text)
        except ValueError:
            return resp.text
        return str(detail)
