import logging
import httpx
from urllib.parse import quote
from pydantic import ValidationError
from typing import Any, Dict, List, Optional
from .config import Settings, get_settings
from .models import Video, VideoRequest

logger = logging.getLogger(__name__)

EXPLORE_PATH = "/api/explore"
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class FeedClientError(Exception):
    pass


def _segment(video_id: str) -> str:
    return quote(video_id, safe="")


class ExploreClient:
    """Calls the explore-video endpoints of the VietViVu backend."""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        s = settings or get_settings()
        self.base = s.api_base_url.rstrip('/')
        self.token = s.api_token
        self.timeout = s.request_timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with self._client() as client:
            resp = await client.request(method, f"{EXPLORE_PATH}{path}", **kwargs)
            resp.raise_for_status()
            return resp

    async def fetch_videos(self) -> List[Video]:
        try:
            resp = await self._request("GET", "/videos")
            data = resp.json()
            if isinstance(data, dict):
                data = data.get("items", [])
            if not isinstance(data, list):
                raise FeedClientError(f"Unexpected videos payload: {type(data).__name__}")
            return [Video.model_validate(it) for it in data]
        except (*REQUEST_ERRORS, ValidationError, ValueError) as exc:
            logger.warning("Fetching approved videos failed: %s", exc)
            raise FeedClientError("Could not load videos") from exc

    async def set_liked(self, video_id: str, liked: bool) -> bool:
        try:
            await self._request("POST", f"/like/{_segment(video_id)}", params={"isLike": "true" if liked else "false"})
        except REQUEST_ERRORS as exc:
            logger.warning("Like toggle for %s failed: %s", video_id, exc)
            return False
        return True

    async def upload_video(self, payload: VideoRequest) -> Video:
        return await self._send_video("POST", "/admin/upload", payload)

    async def update_video(self, video_id: str, payload: VideoRequest) -> Video:
        return await self._send_video("PUT", f"/admin/update/{_segment(video_id)}", payload)

    async def delete_video(self, video_id: str) -> None:
        try:
            await self._request("DELETE", f"/admin/delete/{_segment(video_id)}")
        except REQUEST_ERRORS as exc:
            logger.warning("Deleting video %s failed: %s", video_id, exc)
            raise FeedClientError(f"Could not delete video {video_id}") from exc

    async def _send_video(self, method: str, path: str, payload: VideoRequest) -> Video:
        try:
            resp = await self._request(method, path, json=payload.model_dump(by_alias=True))
            return Video.model_validate(resp.json())
        except (*REQUEST_ERRORS, ValidationError, ValueError) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise FeedClientError(f"Video request {method} {path} failed") from exc
